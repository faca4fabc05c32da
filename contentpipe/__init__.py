"""contentpipe - pipeline configuration graphs and the frontmatter wire codec for model steps."""

from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

from .config import (  # noqa: E402
    ModelConfig,
    ModelImplementation,
    PipelineStep,
    ResolvedPipelineStep,
    RoutingAwareOutput,
    SimpleOutput,
    load_models_config,
    load_pipeline_config,
)
from .drivers import ChatDriver, OpenAIChatDriver, get_driver_for_model, register_driver  # noqa: E402
from .exceptions import (  # noqa: E402
    ConfigurationError,
    ContentPipeError,
    DriverError,
    ParsingError,
    RoutingError,
    ValidationError,
)
from .graph import (  # noqa: E402
    ConfigurationResolver,
    ValidationResult,
    find_entry_points,
    resolve_output_path,
    resolve_step,
    validate,
)
from .infra import ParseMetrics, Settings, configure_logging, settings  # noqa: E402
from .wire import (  # noqa: E402
    InputDocument,
    ParsedResponse,
    RequestSection,
    ResponseSection,
    SectionRole,
    format_request,
    parse_response,
    request_to_messages,
    split_request,
    strip_frontmatter,
    validate_syntax,
)

__all__ = [
    "ChatDriver",
    "ConfigurationError",
    "ConfigurationResolver",
    "ContentPipeError",
    "DriverError",
    "InputDocument",
    "ModelConfig",
    "ModelImplementation",
    "OpenAIChatDriver",
    "ParseMetrics",
    "ParsedResponse",
    "ParsingError",
    "PipelineStep",
    "RequestSection",
    "ResolvedPipelineStep",
    "ResponseSection",
    "RoutingAwareOutput",
    "RoutingError",
    "SectionRole",
    "Settings",
    "SimpleOutput",
    "ValidationError",
    "ValidationResult",
    "configure_logging",
    "find_entry_points",
    "format_request",
    "get_driver_for_model",
    "load_models_config",
    "load_pipeline_config",
    "parse_response",
    "register_driver",
    "request_to_messages",
    "resolve_output_path",
    "resolve_step",
    "settings",
    "split_request",
    "strip_frontmatter",
    "validate",
    "validate_syntax",
]

# runtime package version (from installed metadata)
from importlib.metadata import PackageNotFoundError  # noqa: E402
from importlib.metadata import version as _get_version  # noqa: E402

try:
    __version__ = _get_version("contentpipe")
except PackageNotFoundError:
    # fallback during local editable development
    __version__ = "0.0.0"
