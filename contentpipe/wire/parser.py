"""Response parsing for the frontmatter wire format.

A model reply is either plain text, a single section, or several sections
back to back::

    ---
    filename: Call Maria about Project Deadline.md
    nextStep: tasks
    ---
    Call Maria before Friday.

    ---
    filename: Buy Tomatoes.md
    nextStep: shopping
    ---
    3x tomatoes.

Plain text becomes one section named ``response.md``.  Lenient parsing (the
default) never loses text: sections that cannot be parsed are kept under a
fallback filename.  Strict parsing raises instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ParsingError
from ..infra.metrics import ParseMetrics
from ..infra.settings import settings

logger = logging.getLogger("contentpipe.parser")

DELIMITER = "---"
PLAIN_FILENAME = "response.md"
UNTITLED_FILENAME = "untitled.md"

_NEXT_STEP_KEYS = ("nextStep", "category")


@dataclass
class ResponseSection:
    """One output file extracted from a reply."""

    filename: str
    content: str
    next_step: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"filename": self.filename, "content": self.content, "next_step": self.next_step}


@dataclass
class ParsedResponse:
    """All sections of one reply, in order."""

    sections: list[ResponseSection] = field(default_factory=list)
    is_multi_file: bool = False
    raw_response: str = ""

    @property
    def next_step(self) -> str | None:
        """The first routing decision reported by any section."""
        for section in self.sections:
            if section.next_step:
                return section.next_step
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "is_multi_file": self.is_multi_file,
            "next_step": self.next_step,
        }


# ── Section parsing ────────────────────────────────────────────────────────


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _parse_section(text: str, strict: bool) -> ResponseSection:
    """Parse one ``---`` delimited section (already trimmed)."""
    if not text.startswith(DELIMITER):
        if strict:
            raise ParsingError(
                "Section does not start with frontmatter",
                "Invalid frontmatter format in response",
                context={"text": text[:100]},
            )
        return ResponseSection(filename=UNTITLED_FILENAME, content=text)

    lines = text.split("\n")
    closing = next((i for i in range(1, len(lines)) if lines[i].strip() == DELIMITER), None)
    if closing is None:
        if strict:
            raise ParsingError(
                "No closing --- found for frontmatter",
                "Incomplete frontmatter in response",
                context={"text": text[:100]},
            )
        logger.debug("Frontmatter never closed; keeping section as plain content")
        return ResponseSection(filename=UNTITLED_FILENAME, content=text)

    section = ResponseSection(filename=UNTITLED_FILENAME, content="\n".join(lines[closing + 1 :]).strip())
    metadata: dict[str, str] = {}
    for line in lines[1:closing]:
        stripped = line.strip()
        if not stripped:
            continue
        key, sep, value = stripped.partition(":")
        if not sep:
            if strict:
                raise ParsingError(
                    f"Malformed frontmatter line: {stripped}",
                    "Invalid frontmatter format in response",
                    context={"line": stripped},
                )
            continue
        metadata[key.strip()] = _unquote(value.strip())

    if metadata.get("filename"):
        section.filename = metadata["filename"]
    for key in _NEXT_STEP_KEYS:
        if metadata.get(key):
            section.next_step = metadata[key]
            break
    return section


def is_multi_file(text: str) -> bool:
    """True when a frontmatter block opens after content that followed an earlier block."""
    in_block = False
    blocks_closed = 0
    content_seen = False

    for line in text.split("\n"):
        if line.strip() == DELIMITER:
            if in_block:
                in_block = False
                blocks_closed += 1
            else:
                if content_seen and blocks_closed:
                    return True
                in_block = True
                content_seen = False
        elif not in_block and line.strip():
            content_seen = True
    return False


def _parse_single(text: str, strict: bool) -> ResponseSection:
    trimmed = text.strip()
    if trimmed.startswith(DELIMITER):
        return _parse_section(trimmed, strict)
    return ResponseSection(filename=PLAIN_FILENAME, content=trimmed)


def _parse_multi(text: str, strict: bool) -> list[ResponseSection]:
    sections: list[ResponseSection] = []
    buffer: list[str] = []
    index = 1

    def flush() -> None:
        chunk = "\n".join(buffer).strip()
        if not chunk:
            return
        try:
            sections.append(_parse_section(chunk, strict))
        except ParsingError:
            if strict:
                raise
            sections.append(ResponseSection(filename=f"section-{index}.md", content=chunk))

    in_block = False
    blocks_closed = 0
    content_seen = False
    for line in text.split("\n"):
        if line.strip() == DELIMITER:
            if in_block:
                in_block = False
                blocks_closed += 1
            elif content_seen and blocks_closed:
                flush()
                buffer = []
                content_seen = False
                index += 1
                in_block = True
            else:
                in_block = True
        elif not in_block and line.strip():
            content_seen = True
        buffer.append(line)

    if buffer:
        flush()
    return sections


# ── Public API ─────────────────────────────────────────────────────────────


def parse_response(
    text: str,
    *,
    max_size: int | None = None,
    strict: bool | None = None,
    metrics: ParseMetrics | None = None,
) -> ParsedResponse:
    """Parse a model reply into its output sections.

    Args:
        text: The raw reply.
        max_size: Maximum UTF-8 size in bytes.  Defaults to
            ``settings.max_response_size``.
        strict: Raise on malformed sections instead of keeping them under
            a fallback filename.  Defaults to ``settings.strict_parsing``.
        metrics: Optional accumulator updated with the outcome.

    Returns:
        A :class:`ParsedResponse` with at least one section.

    Raises:
        ParsingError: If the reply is too large, or malformed in strict mode.
    """
    max_size = settings.max_response_size if max_size is None else max_size
    strict = settings.strict_parsing if strict is None else strict

    size = len(text.encode("utf-8", "surrogatepass"))
    if size > max_size:
        if metrics is not None:
            metrics.record_error()
        raise ParsingError(
            f"Response too large: {size} bytes",
            "Model response exceeds maximum size limit",
            context={"response_size": size, "max_size": max_size},
            suggestions=["Request a smaller response from the model", "Increase the size limit"],
        )

    try:
        multi = is_multi_file(text)
        sections = _parse_multi(text, strict) if multi else [_parse_single(text, strict)]
    except ParsingError as e:
        if metrics is not None:
            metrics.record_error()
        raise ParsingError(
            f"Failed to parse response: {e.message}",
            "Could not understand the model response format",
            context={"response_length": len(text), "cause": e.to_dict()},
            suggestions=["Check the model response format", "Verify frontmatter syntax"],
        ) from e

    if metrics is not None:
        metrics.record(len(sections), is_multi_file=multi)
    logger.debug("Parsed %s-file response: %d section(s)", "multi" if multi else "single", len(sections))
    return ParsedResponse(sections=sections, is_multi_file=multi, raw_response=text)


def validate_syntax(text: str) -> bool:
    """True when *text* parses as one well-formed section in strict mode."""
    try:
        _parse_section(text, strict=True)
    except ParsingError:
        return False
    return True
