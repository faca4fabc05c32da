"""Whole-configuration validation for the models and pipeline documents.

:func:`validate` checks the two documents as a unit and never raises.  Every
check writes into a shared :class:`ValidationResult`, so a single call reports
all problems at once:

* schema: ID formats, entry counts, per-entry fields
* cross-references: every step's model config exists
* routing targets: every routing key names an existing step
* cycles: the routing graph is acyclic (full cycle path reported)
* topology: at least one entry point, no orphaned steps
* path conflicts: no output/archive path owned by two steps
* directory format: paths end with ``/`` and never climb with ``..``
* routing completeness: every routing option has an output path or a default

Quick start::

    from contentpipe.graph.validator import validate

    result = validate(models_doc, pipeline_doc)
    if not result.is_valid:
        for message in result.errors:
            print(message)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from ..config.loader import coerce_models, coerce_pipeline
from ..config.models import PipelineConfiguration, PipelineStep, RoutingAwareOutput

logger = logging.getLogger("contentpipe.validator")

ErrorCategory = Literal["models", "pipeline", "cross_ref", "output_routing"]


@dataclass
class ValidationResult:
    """Aggregated report of one :func:`validate` call.

    Args:
        models_errors: Problems inside the models document.
        pipeline_errors: Step schema, routing target, cycle and topology problems.
        cross_ref_errors: Steps referencing missing model configs.
        output_routing_errors: Output/archive path conflicts and format problems.
        warnings: Non-fatal findings (missing routing coverage, unused configs).
        entry_points: Steps that can start the pipeline.
        cycles: Every detected routing cycle as a list of step IDs.
        conflicts: Output/archive paths owned by more than one step.
    """

    models_errors: list[str] = field(default_factory=list)
    pipeline_errors: list[str] = field(default_factory=list)
    cross_ref_errors: list[str] = field(default_factory=list)
    output_routing_errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    entry_points: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    conflicts: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def errors(self) -> list[str]:
        """All errors, in category order."""
        return [
            *self.models_errors,
            *self.pipeline_errors,
            *self.cross_ref_errors,
            *self.output_routing_errors,
        ]

    def add_error(self, category: ErrorCategory, message: str) -> None:
        getattr(self, f"{category}_errors").append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def summary(self) -> str:
        """One-line status, e.g. ``"Invalid (Pipeline: 2 errors)"``."""
        if self.is_valid:
            return f"Valid ({len(self.entry_points)} entry point(s))"
        sections = []
        for label, errors in (
            ("Models", self.models_errors),
            ("Pipeline", self.pipeline_errors),
            ("Cross-ref", self.cross_ref_errors),
            ("Output routing", self.output_routing_errors),
        ):
            if errors:
                sections.append(f"{label}: {len(errors)} error(s)")
        return f"Invalid ({', '.join(sections)})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dictionary."""
        return {
            "is_valid": self.is_valid,
            "models_errors": list(self.models_errors),
            "pipeline_errors": list(self.pipeline_errors),
            "cross_ref_errors": list(self.cross_ref_errors),
            "output_routing_errors": list(self.output_routing_errors),
            "warnings": list(self.warnings),
            "entry_points": list(self.entry_points),
            "cycles": [list(c) for c in self.cycles],
            "conflicts": {path: list(owners) for path, owners in self.conflicts.items()},
        }


# ── Entry point ────────────────────────────────────────────────────────────


def validate(models: Any, pipeline: Any) -> ValidationResult:
    """Validate a models document and a pipeline document together.

    Args:
        models: Mapping of config ID to model config (raw dicts or
            :class:`~contentpipe.config.models.ModelConfig` records).
        pipeline: Mapping of step ID to step (raw dicts or
            :class:`~contentpipe.config.models.PipelineStep` records).

    Returns:
        A complete :class:`ValidationResult`.  Never raises for bad input.
    """
    result = ValidationResult()

    typed_models, errors = coerce_models(models)
    for message in errors:
        result.add_error("models", message)

    steps, errors = coerce_pipeline(pipeline)
    for message in errors:
        result.add_error("pipeline", message)

    # reference checks use declared IDs; a malformed entry is reported once
    declared_models = _declared_ids(models)
    declared_steps = _declared_ids(pipeline)

    _check_cross_references(result, declared_models, steps)
    _check_unused_models(result, typed_models, steps)
    _check_prompts(result, steps)
    _check_routing_targets(result, declared_steps, steps)
    _check_cycles(result, steps)
    _check_topology(result, steps)
    _check_path_conflicts(result, steps)
    _check_directory_format(result, steps)
    _check_routing_completeness(result, steps)

    logger.debug(
        "Validated %d model config(s), %d step(s): %s, %d warning(s)",
        len(declared_models),
        len(declared_steps),
        result.summary(),
        len(result.warnings),
    )
    return result


def find_entry_points(pipeline: PipelineConfiguration) -> list[str]:
    """Steps no other step routes to and that declare an input directory."""
    referenced = _referenced_steps(pipeline)
    return [sid for sid, step in pipeline.items() if sid not in referenced and step.input_pattern]


# ── Individual checks ──────────────────────────────────────────────────────


def _declared_ids(document: Any) -> list[str]:
    if not isinstance(document, Mapping):
        return []
    return [key for key in document if isinstance(key, str)]


def _referenced_steps(steps: PipelineConfiguration) -> set[str]:
    referenced: set[str] = set()
    for step in steps.values():
        referenced.update(step.routing_options)
    return referenced


def _check_cross_references(result: ValidationResult, model_ids: list[str], steps: PipelineConfiguration) -> None:
    available = ", ".join(model_ids) or "none"
    for step_id, step in steps.items():
        if step.model_config_id not in model_ids:
            result.add_error(
                "cross_ref",
                f'Step "{step_id}" references missing model config "{step.model_config_id}" '
                f"(available: {available})",
            )


def _check_unused_models(result: ValidationResult, models: Mapping[str, Any], steps: PipelineConfiguration) -> None:
    used = {step.model_config_id for step in steps.values()}
    unused = [config_id for config_id in models if config_id not in used]
    if unused and steps:
        result.add_warning(f"Unused model configs: {', '.join(unused)}")


def _check_prompts(result: ValidationResult, steps: PipelineConfiguration) -> None:
    for step_id, step in steps.items():
        if not step.prompts:
            result.add_warning(f'Step "{step_id}" has no prompt files; model output quality may suffer')


def _check_routing_targets(result: ValidationResult, step_ids: list[str], steps: PipelineConfiguration) -> None:
    for step_id, step in steps.items():
        for target in step.routing_options:
            if target not in step_ids:
                result.add_error(
                    "pipeline",
                    f'Invalid step reference: "{step_id}" routes to "{target}", which does not exist',
                )


def _check_cycles(result: ValidationResult, steps: PipelineConfiguration) -> None:
    graph = {sid: [t for t in step.routing_options if t in steps] for sid, step in steps.items()}
    for cycle in _find_cycles(graph):
        result.cycles.append(cycle)
        result.add_error("pipeline", f"Circular routing detected: {' -> '.join(cycle)}")


def _find_cycles(graph: Mapping[str, list[str]]) -> list[list[str]]:
    """Iterative DFS; every back-edge yields one cycle path closed on its start."""
    on_stack, done = 1, 2
    state: dict[str, int] = {}
    cycles: list[list[str]] = []

    for root in graph:
        if root in state:
            continue
        state[root] = on_stack
        path = [root]
        stack = [iter(graph[root])]
        while stack:
            for child in stack[-1]:
                child_state = state.get(child)
                if child_state == on_stack:
                    cycles.append(path[path.index(child) :] + [child])
                elif child_state is None:
                    state[child] = on_stack
                    path.append(child)
                    stack.append(iter(graph[child]))
                    break
            else:
                state[path.pop()] = done
                stack.pop()
    return cycles


def _check_topology(result: ValidationResult, steps: PipelineConfiguration) -> None:
    if not steps:
        return
    referenced = _referenced_steps(steps)
    result.entry_points = find_entry_points(steps)
    orphans = [sid for sid, step in steps.items() if sid not in referenced and not step.input_pattern]

    if not result.entry_points:
        result.add_error(
            "pipeline",
            "Pipeline has no entry points: every step is either routed to by another step or has no input directory",
        )
    for step_id in orphans:
        result.add_error(
            "pipeline",
            f'Orphaned step "{step_id}": no step routes to it and it has no input directory',
        )


def _check_path_conflicts(result: ValidationResult, steps: PipelineConfiguration) -> None:
    owners: dict[str, list[str]] = {}
    for step_id, step in steps.items():
        for path in dict.fromkeys(step.all_paths()):
            owners.setdefault(path, []).append(step_id)

    for path, step_ids in owners.items():
        if len(step_ids) > 1:
            result.conflicts[path] = step_ids
            result.add_error(
                "output_routing",
                f'Output path conflict: "{path}" used by steps: {", ".join(step_ids)}',
            )


def _has_parent_segment(path: str) -> bool:
    return ".." in path.replace("\\", "/").split("/")


def _step_paths(step: PipelineStep) -> list[tuple[str, str]]:
    labelled: list[tuple[str, str]] = []
    if isinstance(step.output, RoutingAwareOutput):
        labelled.extend((f'output "{key}"', path) for key, path in step.output.routes.items())
        if step.output.default is not None:
            labelled.append(('output "default"', step.output.default))
    else:
        labelled.append(("output", step.output.path))
    labelled.append(("archive", step.archive_pattern))
    return labelled


def _check_directory_format(result: ValidationResult, steps: PipelineConfiguration) -> None:
    for step_id, step in steps.items():
        for label, path in _step_paths(step):
            if not path.endswith("/"):
                result.add_error(
                    "output_routing",
                    f'Step "{step_id}": {label} path "{path}" must end with "/" to indicate a directory',
                )
            if _has_parent_segment(path):
                result.add_error(
                    "output_routing",
                    f'Step "{step_id}": {label} path "{path}" cannot contain parent directory references (..)',
                )
        if step.input_pattern and _has_parent_segment(step.input_pattern):
            result.add_error(
                "pipeline",
                f'Step "{step_id}": input path "{step.input_pattern}" cannot contain parent directory references (..)',
            )


def _check_routing_completeness(result: ValidationResult, steps: PipelineConfiguration) -> None:
    for step_id, step in steps.items():
        output = step.output
        if not isinstance(output, RoutingAwareOutput):
            continue

        if not output.routes and output.default is None:
            result.add_error("output_routing", f'Step "{step_id}": routing-aware output defines no paths')
            continue

        options = step.routing_options
        missing = [option for option in options if option not in output.routes]
        if output.default is None and missing:
            result.add_warning(
                f'Step "{step_id}": missing output paths for next steps: {", ".join(missing)} '
                "and no default fallback; choosing one of them will fail at runtime"
            )

        if step.next_steps is not None:
            unused = [key for key in output.routes if key not in step.next_steps]
            if unused:
                result.add_warning(f'Step "{step_id}": unused output paths configured: {", ".join(unused)}')
