"""Configuration records for models and pipeline steps.

Both configuration documents are plain JSON objects keyed by ID.  The records
here validate a single entry; document-level rules (ID formats, entry counts,
graph invariants) live in :mod:`contentpipe.graph.validator`.

Raw documents use camelCase keys (``baseUrl``, ``modelConfig``); the records
accept those aliases as well as the snake_case field names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, field_validator

# ── Document constants ─────────────────────────────────────────────────────

DEFAULT_ROUTE: str = "default"
MAX_PIPELINE_STEPS: int = 20
MAX_MODEL_CONFIGS: int = 50

STEP_ID_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")
MODEL_CONFIG_ID_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9_-]*[a-z0-9])?$")

_API_KEY_PATTERN = re.compile(r"^[^\s\"']+$")


class ModelImplementation(str, Enum):
    """Backend client implementations a model config can select."""

    whisper = "whisper"
    chatgpt = "chatgpt"
    claude = "claude"

    @property
    def capability(self) -> str:
        """``"transcription"`` or ``"chat-completion"``."""
        if self is ModelImplementation.whisper:
            return "transcription"
        return "chat-completion"


# ── Model configuration ────────────────────────────────────────────────────


class ModelConfig(BaseModel):
    """Credentials and implementation details for one model backend."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=(), extra="ignore", frozen=True)

    base_url: str = Field(validation_alias=AliasChoices("baseUrl", "base_url"), serialization_alias="baseUrl")
    api_key: str = Field(
        validation_alias=AliasChoices("apiKey", "api_key"), serialization_alias="apiKey", repr=False
    )
    implementation: ModelImplementation
    model_name: str = Field(
        validation_alias=AliasChoices("model", "modelName", "model_name"), serialization_alias="model"
    )
    organization: str | None = None

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Base URL cannot be empty")
        if not value.startswith(("http://", "https://")):
            raise ValueError("Base URL must be a valid http(s) URL")
        return value.rstrip("/")

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("API key cannot be empty")
        if not _API_KEY_PATTERN.match(value):
            raise ValueError("API key cannot contain spaces or quotes")
        return value

    @field_validator("model_name")
    @classmethod
    def _check_model_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Model cannot be empty")
        return value

    def to_dict(self, *, include_secrets: bool = False) -> dict[str, Any]:
        """Serialize back to the raw document shape."""
        data = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        if not include_secrets:
            data.pop("apiKey", None)
        return data


# ── Step output variant ────────────────────────────────────────────────────


def _check_path(value: str) -> str:
    if not value.strip():
        raise ValueError("Output path must be a non-empty string")
    return value.strip()


OutputPath = Annotated[str, AfterValidator(_check_path)]


class SimpleOutput(BaseModel):
    """A single static output directory."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["simple"] = "simple"
    path: OutputPath

    def paths(self) -> list[str]:
        return [self.path]

    def to_raw(self) -> str:
        return self.path


class RoutingAwareOutput(BaseModel):
    """Output directories keyed by the next step the model chooses."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["routing"] = "routing"
    routes: dict[str, OutputPath] = Field(default_factory=dict)
    default: OutputPath | None = None

    @property
    def options(self) -> list[str]:
        """Routing keys, excluding the default fallback."""
        return list(self.routes)

    def paths(self) -> list[str]:
        paths = list(self.routes.values())
        if self.default is not None:
            paths.append(self.default)
        return paths

    def to_raw(self) -> dict[str, str]:
        raw = dict(self.routes)
        if self.default is not None:
            raw[DEFAULT_ROUTE] = self.default
        return raw


StepOutput = Annotated[Union[SimpleOutput, RoutingAwareOutput], Field(discriminator="kind")]


# ── Pipeline step ──────────────────────────────────────────────────────────


class PipelineStep(BaseModel):
    """One named unit of pipeline work.

    Attributes:
        model_config_id: ID of the :class:`ModelConfig` this step runs on.
        input_pattern: Directory the step consumes.  Steps without one can
            only be reached through routing.
        output: Static or routing-aware output directory.
        archive_pattern: Directory processed inputs are moved to.
        prompts: Instruction files sent with every request.
        context: Optional reference files.
        next_steps: Routing options mapped to human-readable criteria.
        description: What the step does; also used as routing criteria.
    """

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=(), extra="ignore", frozen=True)

    model_config_id: str = Field(
        validation_alias=AliasChoices("modelConfig", "model_config_id"), serialization_alias="modelConfig"
    )
    input_pattern: str | None = Field(
        default=None, validation_alias=AliasChoices("input", "input_pattern"), serialization_alias="input"
    )
    output: StepOutput
    archive_pattern: str = Field(
        validation_alias=AliasChoices("archive", "archive_pattern"), serialization_alias="archive"
    )
    prompts: list[str] = Field(default_factory=list)
    context: list[str] = Field(default_factory=list)
    next_steps: dict[str, str] | None = Field(
        default=None, validation_alias=AliasChoices("next", "next_steps"), serialization_alias="next"
    )
    description: str | None = None

    @field_validator("output", mode="before")
    @classmethod
    def _coerce_output(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"kind": "simple", "path": value}
        if isinstance(value, dict):
            routes = {key: path for key, path in value.items() if key != DEFAULT_ROUTE}
            return {"kind": "routing", "routes": routes, "default": value.get(DEFAULT_ROUTE)}
        return value

    @field_validator("model_config_id")
    @classmethod
    def _check_model_config_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Model config must be a non-empty string")
        return value

    @field_validator("archive_pattern")
    @classmethod
    def _check_archive_pattern(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Archive path must be a non-empty string")
        return value

    @field_validator("input_pattern")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("prompts", "context")
    @classmethod
    def _check_file_list(cls, value: list[str]) -> list[str]:
        for entry in value:
            if not entry.strip():
                raise ValueError("File paths must be non-empty strings")
        return [entry.strip() for entry in value]

    @property
    def routing_options(self) -> list[str]:
        """Step IDs this step may route to, in declaration order."""
        options: list[str] = []
        for key in self.next_steps or {}:
            if key != DEFAULT_ROUTE and key not in options:
                options.append(key)
        if isinstance(self.output, RoutingAwareOutput):
            for key in self.output.options:
                if key not in options:
                    options.append(key)
        return options

    def routing_criteria(self, option: str) -> str | None:
        """Human-readable criteria declared for *option*, if any."""
        if self.next_steps:
            return self.next_steps.get(option)
        return None

    def output_paths(self) -> list[str]:
        return self.output.paths()

    def all_paths(self) -> list[str]:
        """Output paths followed by the archive path."""
        return [*self.output_paths(), self.archive_pattern]

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the raw document shape."""
        data: dict[str, Any] = {"modelConfig": self.model_config_id}
        if self.input_pattern is not None:
            data["input"] = self.input_pattern
        data["output"] = self.output.to_raw()
        data["archive"] = self.archive_pattern
        data["prompts"] = list(self.prompts)
        data["context"] = list(self.context)
        if self.next_steps is not None:
            data["next"] = dict(self.next_steps)
        if self.description is not None:
            data["description"] = self.description
        return data


ModelsConfig = dict[str, ModelConfig]
PipelineConfiguration = dict[str, PipelineStep]


# ── Resolution result ──────────────────────────────────────────────────────


@dataclass
class ResolvedPipelineStep:
    """A pipeline step joined with its model config and routing decision.

    Produced per processing call and never stored.  ``resolved_output_path``
    is ``None`` when no routing decision could be resolved yet.
    """

    step_id: str
    model_config: ModelConfig
    input_pattern: str | None
    archive_pattern: str
    prompts: list[str] = field(default_factory=list)
    context: list[str] = field(default_factory=list)
    resolved_output_path: str | None = None
    routing_aware_output: RoutingAwareOutput | None = None
    routing_options: dict[str, str] = field(default_factory=dict)
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dictionary (API key omitted)."""
        return {
            "step_id": self.step_id,
            "model_config": self.model_config.to_dict(),
            "input_pattern": self.input_pattern,
            "archive_pattern": self.archive_pattern,
            "prompts": list(self.prompts),
            "context": list(self.context),
            "resolved_output_path": self.resolved_output_path,
            "routing_aware_output": self.routing_aware_output.to_raw() if self.routing_aware_output else None,
            "routing_options": dict(self.routing_options),
            "description": self.description,
        }
