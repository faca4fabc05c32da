"""Pipeline graph validation and step resolution."""

from .resolver import (
    ConfigurationResolver,
    resolve_output_path,
    resolve_step,
    routing_menu,
)
from .validator import ValidationResult, find_entry_points, validate

__all__ = [
    "ConfigurationResolver",
    "ValidationResult",
    "find_entry_points",
    "resolve_output_path",
    "resolve_step",
    "routing_menu",
    "validate",
]
