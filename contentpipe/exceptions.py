"""contentpipe exception hierarchy.

Provides a structured set of exceptions for the failure modes of the
configuration resolver and the wire codec.  All exceptions inherit from
:class:`ContentPipeError` which itself inherits from ``Exception``.  Where
appropriate, exceptions also inherit from the stdlib exception callers would
otherwise catch (e.g. ``ParsingError`` extends ``ValueError``).

Every error carries a technical message, a user-facing message, a structured
``context`` dict (offending IDs, available alternatives) and a list of
remediation ``suggestions`` that downstream consumers surface verbatim.
"""

from __future__ import annotations

from typing import Any


class ContentPipeError(Exception):
    """Base exception for all contentpipe errors."""

    error_type: str = "pipeline"
    default_suggestions: tuple[str, ...] = (
        "Check your pipeline configuration",
        "Verify all required steps are configured",
    )

    def __init__(
        self,
        message: str = "",
        user_message: str | None = None,
        *,
        context: dict[str, Any] | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.context: dict[str, Any] = dict(context or {})
        self.suggestions: list[str] = list(suggestions) if suggestions is not None else list(self.default_suggestions)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dictionary."""
        return {
            "type": self.error_type,
            "message": self.message,
            "user_message": self.user_message,
            "context": self.context,
            "suggestions": self.suggestions,
        }


class ConfigurationError(ContentPipeError, ValueError):
    """Raised for malformed or missing configuration documents and required files."""

    error_type = "configuration"
    default_suggestions = (
        "Check your settings",
        "Verify your configuration format",
    )


class ValidationError(ContentPipeError):
    """Raised when a configuration violates a structural rule."""

    error_type = "validation"
    default_suggestions = (
        "Check your input data",
        "Verify all required fields are present",
    )


class RoutingError(ContentPipeError):
    """Raised when no output path can be resolved for a routing decision."""

    error_type = "routing"
    default_suggestions = (
        "Add a default fallback to the output configuration",
        "Ensure the model returns a valid nextStep option",
    )


class ParsingError(ContentPipeError, ValueError):
    """Raised when a model reply does not follow the wire format."""

    error_type = "parsing"
    default_suggestions = (
        "Check the model response format",
        "Verify the frontmatter syntax",
    )


class DriverError(ContentPipeError, RuntimeError):
    """Raised when a backend call fails."""

    error_type = "api"
    default_suggestions = (
        "Check your API key",
        "Verify your internet connection",
        "Check API service status",
    )
