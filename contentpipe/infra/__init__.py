"""Infrastructure: settings, logging, diagnostics."""

from .logging import JSONFormatter, configure_logging
from .metrics import ParseMetrics
from .settings import Settings, settings

__all__ = [
    "JSONFormatter",
    "ParseMetrics",
    "Settings",
    "configure_logging",
    "settings",
]
