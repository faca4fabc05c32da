"""Loading the two configuration documents.

The models document and the pipeline document arrive as JSON text (from a
settings store) or as already-decoded mappings.  ``coerce_*`` helpers turn a
raw mapping into typed records and *collect* problems; ``load_*`` helpers do
the same but raise on the first document that has any.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationError, ValidationError
from .models import (
    MAX_MODEL_CONFIGS,
    MAX_PIPELINE_STEPS,
    MODEL_CONFIG_ID_PATTERN,
    STEP_ID_PATTERN,
    ModelConfig,
    ModelsConfig,
    PipelineConfiguration,
    PipelineStep,
)

logger = logging.getLogger("contentpipe.config")

DocumentSource = Union[str, bytes, Mapping[str, Any]]


def parse_document(source: DocumentSource | None, name: str) -> dict[str, Any]:
    """Decode one configuration document into a plain dict.

    Args:
        source: JSON text, or an already-decoded mapping.
        name: ``"models"`` or ``"pipeline"``; used in error messages.

    Raises:
        ConfigurationError: If the document is missing, is not valid JSON, or
            is not a JSON object.
    """
    if source is None or (isinstance(source, (str, bytes)) and not source.strip()):
        raise ConfigurationError(
            f"{name.capitalize()} configuration is missing",
            f"The {name} configuration is empty",
            context={"document": name},
            suggestions=[f"Add a {name} configuration in settings", "Ensure the configuration is saved"],
        )

    if isinstance(source, Mapping):
        return dict(source)

    try:
        data = json.loads(source)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid {name} configuration JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            f"The {name} configuration contains invalid JSON syntax",
            context={"document": name, "line": e.lineno, "column": e.colno},
            suggestions=[f"Check JSON syntax in the {name} configuration", "Fix parsing errors"],
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid {name} configuration: expected a JSON object, got {type(data).__name__}",
            f"The {name} configuration must be a JSON object keyed by ID",
            context={"document": name, "type": type(data).__name__},
        )
    return data


def format_validation_errors(exc: PydanticValidationError, prefix: str) -> list[str]:
    """Flatten a pydantic error into ``"<prefix>.<field>: <message>"`` lines."""
    messages = []
    for err in exc.errors():
        parts = list(err.get("loc", ()))
        # drop the union tag pydantic inserts for the output variant
        if len(parts) > 1 and parts[0] == "output" and parts[1] in ("simple", "routing"):
            del parts[1]
        loc = ".".join(str(part) for part in parts)
        where = f"{prefix}.{loc}" if loc else prefix
        messages.append(f"{where}: {err.get('msg', 'invalid value')}")
    return messages


def _coerce_entries(
    document: Any,
    *,
    name: str,
    record: type[BaseModel],
    id_pattern: Any,
    id_rule: str,
    max_entries: int,
) -> tuple[dict[str, Any], list[str]]:
    errors: list[str] = []
    if not isinstance(document, Mapping):
        return {}, [f"{name.capitalize()} configuration must be an object keyed by ID"]
    if not document:
        errors.append(f"{name.capitalize()} configuration cannot be empty")
    if len(document) > max_entries:
        errors.append(f"{name.capitalize()} configuration has {len(document)} entries (maximum {max_entries})")

    typed: dict[str, Any] = {}
    for entry_id, raw in document.items():
        if not isinstance(entry_id, str) or not id_pattern.match(entry_id):
            errors.append(f"Invalid {name} ID '{entry_id}': {id_rule}")
            continue
        if isinstance(raw, record):
            typed[entry_id] = raw
            continue
        if not isinstance(raw, Mapping):
            errors.append(f"{name}.{entry_id}: entry must be an object")
            continue
        try:
            typed[entry_id] = record.model_validate(dict(raw))
        except PydanticValidationError as e:
            errors.extend(format_validation_errors(e, f"{name}.{entry_id}"))
    return typed, errors


def coerce_models(document: Any) -> tuple[ModelsConfig, list[str]]:
    """Validate every entry of a models document, collecting errors."""
    return _coerce_entries(
        document,
        name="models",
        record=ModelConfig,
        id_pattern=MODEL_CONFIG_ID_PATTERN,
        id_rule="use lowercase letters, digits, hyphens and underscores",
        max_entries=MAX_MODEL_CONFIGS,
    )


def coerce_pipeline(document: Any) -> tuple[PipelineConfiguration, list[str]]:
    """Validate every entry of a pipeline document, collecting errors."""
    return _coerce_entries(
        document,
        name="pipeline",
        record=PipelineStep,
        id_pattern=STEP_ID_PATTERN,
        id_rule="must start with a letter and contain only letters, digits, hyphens and underscores",
        max_entries=MAX_PIPELINE_STEPS,
    )


def load_models_config(source: DocumentSource) -> ModelsConfig:
    """Parse and validate a models document.

    Raises:
        ConfigurationError: If the document cannot be decoded.
        ValidationError: If any entry breaks the schema.
    """
    models, errors = coerce_models(parse_document(source, "models"))
    if errors:
        raise ValidationError(
            f"Invalid models configuration: {'; '.join(errors)}",
            "The models configuration contains validation errors",
            context={"errors": errors},
            suggestions=["Fix the listed fields in the models configuration"],
        )
    logger.debug("Loaded %d model config(s)", len(models))
    return models


def load_pipeline_config(source: DocumentSource) -> PipelineConfiguration:
    """Parse and validate a pipeline document.

    Raises:
        ConfigurationError: If the document cannot be decoded.
        ValidationError: If any step breaks the schema.
    """
    pipeline, errors = coerce_pipeline(parse_document(source, "pipeline"))
    if errors:
        raise ValidationError(
            f"Invalid pipeline configuration: {'; '.join(errors)}",
            "The pipeline configuration contains validation errors",
            context={"errors": errors},
            suggestions=["Fix the listed fields in the pipeline configuration"],
        )
    logger.debug("Loaded %d pipeline step(s)", len(pipeline))
    return pipeline
