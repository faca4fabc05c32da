"""Diagnostic counters for the response parser.

:class:`ParseMetrics` is an explicit accumulator: callers create one and pass
it to :func:`~contentpipe.wire.parser.parse_response`.  Nothing is shared at
module level.

Usage::

    from contentpipe import ParseMetrics, parse_response

    metrics = ParseMetrics()
    parse_response(reply_text, metrics=metrics)
    print(metrics.summary()["formatted"])
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("contentpipe.metrics")


@dataclass
class ParseMetrics:
    """Accumulates parser statistics across calls."""

    responses_parsed: int = 0
    multi_file_responses: int = 0
    total_sections: int = 0
    parse_errors: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, section_count: int, *, is_multi_file: bool) -> None:
        """Record a successfully parsed response."""
        with self._lock:
            self.responses_parsed += 1
            self.total_sections += section_count
            if is_multi_file:
                self.multi_file_responses += 1
            logger.debug(
                "[metrics] record sections=%d multi=%s | responses=%d sections=%d",
                section_count,
                is_multi_file,
                self.responses_parsed,
                self.total_sections,
            )

    def record_error(self) -> None:
        """Record a failed parse."""
        with self._lock:
            self.parse_errors += 1

    def reset(self) -> None:
        with self._lock:
            self.responses_parsed = 0
            self.multi_file_responses = 0
            self.total_sections = 0
            self.parse_errors = 0

    def summary(self) -> dict[str, Any]:
        """Return a machine-readable summary with a ``formatted`` string."""
        formatted = f"Parser: {self.responses_parsed} response(s), {self.total_sections} section(s)"
        if self.multi_file_responses:
            formatted += f", {self.multi_file_responses} multi-file"
        if self.parse_errors:
            formatted += f" ({self.parse_errors} error(s))"
        return {
            "responses_parsed": self.responses_parsed,
            "multi_file_responses": self.multi_file_responses,
            "total_sections": self.total_sections,
            "parse_errors": self.parse_errors,
            "formatted": formatted,
        }
