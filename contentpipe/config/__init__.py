"""Configuration records and document loading."""

from .loader import (
    coerce_models,
    coerce_pipeline,
    format_validation_errors,
    load_models_config,
    load_pipeline_config,
    parse_document,
)
from .models import (
    DEFAULT_ROUTE,
    MAX_MODEL_CONFIGS,
    MAX_PIPELINE_STEPS,
    MODEL_CONFIG_ID_PATTERN,
    STEP_ID_PATTERN,
    ModelConfig,
    ModelImplementation,
    ModelsConfig,
    PipelineConfiguration,
    PipelineStep,
    ResolvedPipelineStep,
    RoutingAwareOutput,
    SimpleOutput,
    StepOutput,
)

__all__ = [
    "DEFAULT_ROUTE",
    "MAX_MODEL_CONFIGS",
    "MAX_PIPELINE_STEPS",
    "MODEL_CONFIG_ID_PATTERN",
    "STEP_ID_PATTERN",
    "ModelConfig",
    "ModelImplementation",
    "ModelsConfig",
    "PipelineConfiguration",
    "PipelineStep",
    "ResolvedPipelineStep",
    "RoutingAwareOutput",
    "SimpleOutput",
    "StepOutput",
    "coerce_models",
    "coerce_pipeline",
    "format_validation_errors",
    "load_models_config",
    "load_pipeline_config",
    "parse_document",
]
