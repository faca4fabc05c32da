"""Step resolution and routing-aware output path selection.

:func:`resolve_step` joins a pipeline step with the model config it
references and, given the model's routing decision, the directory its output
goes to.  :func:`resolve_output_path` owns the selection policy:

1. the chosen next step, when the output maps it;
2. the ``"default"`` fallback, when configured;
3. otherwise :class:`~contentpipe.exceptions.RoutingError`.

A simple (non-routing) output always resolves to its single path.

Quick start::

    from contentpipe.graph.resolver import ConfigurationResolver

    resolver = ConfigurationResolver.from_json(models_text, pipeline_text)
    step = resolver.resolve_step("summarize", chosen_next_step="publish")
    step.resolved_output_path   # "notes/publish/"
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from ..config.loader import DocumentSource, format_validation_errors, parse_document
from ..config.models import (
    DEFAULT_ROUTE,
    ModelConfig,
    PipelineStep,
    ResolvedPipelineStep,
    RoutingAwareOutput,
    SimpleOutput,
)
from ..exceptions import RoutingError, ValidationError
from .validator import ValidationResult, find_entry_points, validate

logger = logging.getLogger("contentpipe.resolver")

OutputSource = Union[PipelineStep, SimpleOutput, RoutingAwareOutput, str, Mapping[str, str]]

# ── Output path selection ──────────────────────────────────────────────────


def _as_output(source: OutputSource) -> SimpleOutput | RoutingAwareOutput:
    if isinstance(source, PipelineStep):
        return source.output
    if isinstance(source, (SimpleOutput, RoutingAwareOutput)):
        return source
    if isinstance(source, str):
        return SimpleOutput(path=source)
    if isinstance(source, Mapping):
        routes = {key: path for key, path in source.items() if key != DEFAULT_ROUTE}
        return RoutingAwareOutput(routes=routes, default=source.get(DEFAULT_ROUTE))
    raise ValidationError(
        f"Invalid output configuration: {type(source).__name__}",
        "Step output configuration is in an invalid format",
        context={"output": repr(source)},
        suggestions=[
            "Use a string for a simple output path",
            "Use an object mapping next step IDs to paths for routing-aware output",
        ],
    )


def resolve_output_path(step: OutputSource, chosen_next_step: str | None = None) -> str:
    """Select the output directory for a routing decision.

    Args:
        step: A pipeline step, an output variant, or a raw output value
            (path string or ``{next_step: path, "default": path}`` mapping).
        chosen_next_step: The ``nextStep`` the model reported, if any.

    Returns:
        The resolved directory path.

    Raises:
        RoutingError: If the routing-aware output maps neither the chosen
            step nor a default.
    """
    output = _as_output(step)
    if isinstance(output, SimpleOutput):
        return output.path

    if chosen_next_step and chosen_next_step in output.routes:
        return output.routes[chosen_next_step]

    if output.default is not None:
        if chosen_next_step:
            logger.debug("nextStep %r has no output path; using default fallback", chosen_next_step)
        return output.default

    raise RoutingError(
        f'No valid output path for routing decision: nextStep="{chosen_next_step or "undefined"}", '
        "no default fallback",
        "Unable to determine output path for file processing",
        context={
            "next_step": chosen_next_step,
            "available_options": output.options,
            "has_default": False,
        },
        suggestions=[
            "Add a default fallback to the output configuration",
            "Ensure the model returns a valid nextStep option",
            "Check available routing options in the step configuration",
        ],
    )


# ── Step resolution ────────────────────────────────────────────────────────


def _lookup_step(step_id: str, pipeline: Mapping[str, Any]) -> PipelineStep:
    raw = pipeline.get(step_id)
    if raw is None:
        raise ValidationError(
            f"Pipeline step not found: {step_id}",
            f'Pipeline step "{step_id}" does not exist',
            context={"kind": "step_not_found", "step_id": step_id, "available_steps": list(pipeline)},
            suggestions=["Check step ID spelling", "Use an existing step ID from the pipeline configuration"],
        )
    if isinstance(raw, PipelineStep):
        return raw
    try:
        return PipelineStep.model_validate(raw)
    except PydanticValidationError as e:
        errors = format_validation_errors(e, f"pipeline.{step_id}")
        raise ValidationError(
            f"Invalid pipeline step {step_id}: {'; '.join(errors)}",
            f'Pipeline step "{step_id}" is misconfigured',
            context={"kind": "invalid_step", "step_id": step_id, "errors": errors},
            suggestions=["Fix the listed fields in the step configuration"],
        ) from e


def _lookup_model(step_id: str, config_id: str, models: Mapping[str, Any]) -> ModelConfig:
    raw = models.get(config_id)
    if raw is None:
        raise ValidationError(
            f"Model config not found: {config_id} for step {step_id}",
            f'Model configuration "{config_id}" referenced by step "{step_id}" does not exist',
            context={
                "kind": "model_config_not_found",
                "step_id": step_id,
                "model_config_id": config_id,
                "available_model_configs": list(models),
            },
            suggestions=[
                "Check model config ID spelling",
                "Add the missing model configuration",
                "Use an existing model config ID",
            ],
        )
    if isinstance(raw, ModelConfig):
        return raw
    try:
        return ModelConfig.model_validate(raw)
    except PydanticValidationError as e:
        errors = format_validation_errors(e, f"models.{config_id}")
        raise ValidationError(
            f"Invalid model config {config_id}: {'; '.join(errors)}",
            f'Model configuration "{config_id}" is misconfigured',
            context={"kind": "invalid_model_config", "model_config_id": config_id, "errors": errors},
            suggestions=["Fix the listed fields in the model configuration"],
        ) from e


def routing_menu(step: PipelineStep, pipeline: Mapping[str, Any] | None = None) -> dict[str, str]:
    """Map each routing option of *step* to human-readable criteria.

    Criteria come from the step's ``next`` mapping, then from the target
    step's description, then a generic phrase.
    """
    menu: dict[str, str] = {}
    for option in step.routing_options:
        criteria = step.routing_criteria(option)
        if not criteria and pipeline is not None:
            target = pipeline.get(option)
            if isinstance(target, PipelineStep):
                criteria = target.description
            elif isinstance(target, Mapping):
                criteria = target.get("description")
        menu[option] = criteria or f"Route to {option} processing"
    return menu


def resolve_step(
    step_id: str,
    models: Mapping[str, Any],
    pipeline: Mapping[str, Any],
    chosen_next_step: str | None = None,
) -> ResolvedPipelineStep:
    """Join a step with its model config and resolve its output path.

    Output resolution failures are tolerated: ``resolved_output_path`` is
    left as ``None`` so steps can be inspected before a routing decision
    exists.  :func:`resolve_output_path` raises the routing error when the
    path is actually needed.

    Raises:
        ValidationError: ``context["kind"]`` is ``"step_not_found"`` or
            ``"model_config_not_found"``; both carry the available IDs.
    """
    step = _lookup_step(step_id, pipeline)
    model_config = _lookup_model(step_id, step.model_config_id, models)

    try:
        resolved_output_path: str | None = resolve_output_path(step, chosen_next_step)
    except RoutingError as e:
        logger.debug("Step %s: output path unresolved (%s)", step_id, e.message)
        resolved_output_path = None

    return ResolvedPipelineStep(
        step_id=step_id,
        model_config=model_config,
        input_pattern=step.input_pattern,
        archive_pattern=step.archive_pattern,
        prompts=list(step.prompts),
        context=list(step.context),
        resolved_output_path=resolved_output_path,
        routing_aware_output=step.output if isinstance(step.output, RoutingAwareOutput) else None,
        routing_options=routing_menu(step, pipeline),
        description=step.description,
    )


# ── ConfigurationResolver ──────────────────────────────────────────────────


@dataclass
class ConfigurationResolver:
    """A models/pipeline document pair with resolution helpers.

    Attributes:
        models: Mapping of config ID to model config (raw or typed).
        pipeline: Mapping of step ID to pipeline step (raw or typed).
    """

    models: Mapping[str, Any] = field(default_factory=dict)
    pipeline: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, models_text: DocumentSource, pipeline_text: DocumentSource) -> ConfigurationResolver:
        """Build a resolver from the two raw documents.

        Raises:
            ConfigurationError: If either document is missing or not a JSON object.
        """
        return cls(
            models=parse_document(models_text, "models"),
            pipeline=parse_document(pipeline_text, "pipeline"),
        )

    def validate(self) -> ValidationResult:
        return validate(self.models, self.pipeline)

    def resolve_step(self, step_id: str, chosen_next_step: str | None = None) -> ResolvedPipelineStep:
        return resolve_step(step_id, self.models, self.pipeline, chosen_next_step)

    def resolve_output_path(self, step_id: str, chosen_next_step: str | None = None) -> str:
        """Resolve the output directory of *step_id* for a routing decision."""
        return resolve_output_path(_lookup_step(step_id, self.pipeline), chosen_next_step)

    def find_entry_points(self) -> list[str]:
        steps = {}
        for step_id in self.pipeline:
            try:
                steps[step_id] = _lookup_step(step_id, self.pipeline)
            except ValidationError:
                continue
        return find_entry_points(steps)

    def get_driver_name(self, step_id: str) -> str:
        """Implementation name of the step's model, e.g. ``"chatgpt"``."""
        return self.resolve_step(step_id).model_config.implementation.value
