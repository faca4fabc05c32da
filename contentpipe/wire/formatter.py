"""Request formatting for the frontmatter wire format.

A request is a sequence of sections, each a ``---`` delimited header
followed by a blank line and the section body::

    ---
    role: input
    filename: meeting.md
    ---

    <input document>

    ---
    role: prompt
    filename: summarize.md
    ---

    <instructions>

Sections are joined with a single blank line.  When the step can route, a
final ``routing`` section lists the available next steps and asks the model
to report its choice in a ``nextStep`` field.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Union

from ..exceptions import ConfigurationError

logger = logging.getLogger("contentpipe.formatter")

DELIMITER = "---"
SECTION_SEPARATOR = "\n\n"
ROUTING_FILENAME = "routing-info"


class SectionRole(str, Enum):
    """What a request section carries."""

    input = "input"
    prompt = "prompt"
    context = "context"
    routing = "routing"


@dataclass
class RequestSection:
    """One section of an outgoing request."""

    role: SectionRole
    filename: str
    content: str
    available_next_steps: dict[str, str] | None = None

    def render(self) -> str:
        lines = [DELIMITER, f"role: {self.role.value}", f"filename: {self.filename}"]
        if self.available_next_steps:
            lines.append("available_next_steps:")
            lines.extend(
                f"  {step_id}: {json.dumps(criteria, ensure_ascii=False)}"
                for step_id, criteria in self.available_next_steps.items()
            )
        lines.extend([DELIMITER, "", self.content])
        return "\n".join(lines)


@dataclass
class InputDocument:
    """The document a step processes, already read into memory."""

    filename: str
    content: str


FileReader = Callable[[str], str]


@dataclass
class FileSystemReader:
    """Read UTF-8 text files, optionally relative to *root*.

    Raises :class:`FileNotFoundError` (or another :class:`OSError`) for
    missing files and :class:`UnicodeDecodeError` for undecodable ones;
    callers decide whether that is fatal.
    """

    root: Union[str, Path, None] = None
    encoding: str = "utf-8"

    def __call__(self, path: str) -> str:
        target = Path(path)
        if self.root is not None and not target.is_absolute():
            target = Path(self.root) / target
        return target.read_text(encoding=self.encoding)


# ── Frontmatter helpers ────────────────────────────────────────────────────


def strip_frontmatter(content: str) -> str:
    """Remove a leading ``---`` frontmatter block.

    Returns the remainder trimmed when the trimmed text opens with ``---``
    and a closing ``---`` line exists; otherwise *content* unchanged.
    """
    if not content:
        return content
    trimmed = content.strip()
    if not trimmed.startswith(DELIMITER):
        return content

    lines = trimmed.split("\n")
    for index in range(1, len(lines)):
        if lines[index].strip() == DELIMITER:
            return "\n".join(lines[index + 1 :]).strip()
    return content


def _basename(path: str) -> str:
    return PurePosixPath(path.replace("\\", "/")).name or path


def format_routing_info(routing_options: Mapping[str, str]) -> str:
    """Instructions asking the model to pick one of *routing_options*."""
    lines = [
        "You can return single or multiple files using YAML frontmatter format:",
        "",
        "For single file:",
        "---",
        "filename: Call John about Budget Meeting.md",
        "nextStep: chosen_step_id",
        "---",
        "Your content here...",
        "",
        "For multiple files:",
        "---",
        "filename: Buy 3x Tomatoes at Supermarket.md",
        "nextStep: step_id_1",
        "---",
        "First document content...",
        "",
        "---",
        "filename: Fix Kitchen Sink This Weekend.md",
        "nextStep: step_id_2",
        "---",
        "Second document content...",
        "",
        "Choose SPECIFIC filenames based on the actual content, not generic categories.",
        "Use the main action or key details from the content:",
        '- "Call Maria about Project Deadline.md" NOT "Phone Calls.md"',
        '- "Fix Leaky Bathroom Faucet.md" NOT "Home Repairs.md"',
        '- "Book Flight to Berlin for Conference.md" NOT "Travel Planning.md"',
        "",
        "Use the 'nextStep' field to route content to the most appropriate next processing step "
        "based on the available options provided.",
        "",
        "Available next steps:",
    ]
    lines.extend(f"- {step_id}: {criteria}" for step_id, criteria in routing_options.items())
    return "\n".join(lines)


# ── Request assembly ───────────────────────────────────────────────────────


def _read_input(document: InputDocument | str, reader: FileReader) -> InputDocument:
    if isinstance(document, InputDocument):
        return document
    try:
        content = reader(document)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Input file could not be read: {document} ({e})",
            f'The input file "{_basename(document)}" could not be read',
            context={"path": document},
            suggestions=["Check that the input file still exists", "Check file permissions"],
        ) from e
    return InputDocument(filename=_basename(document), content=content)


def format_request(
    input: InputDocument | str,
    prompts: Sequence[str],
    context: Sequence[str],
    routing_options: Mapping[str, str] | None = None,
    *,
    reader: FileReader | None = None,
) -> str:
    """Assemble the request text for one processing call.

    Args:
        input: The document being processed, or a path to read through *reader*.
        prompts: Prompt file paths; each must be readable.
        context: Context file paths; unreadable ones are skipped.
        routing_options: Next step ID to criteria.  A routing section is
            appended when non-empty.
        reader: Callable returning a file's text.  Defaults to
            :class:`FileSystemReader`.

    Returns:
        The serialized request.

    Raises:
        ConfigurationError: If the input or a prompt file cannot be read.
    """
    reader = reader or FileSystemReader()
    document = _read_input(input, reader)

    sections = [RequestSection(SectionRole.input, document.filename, strip_frontmatter(document.content))]

    for path in prompts:
        try:
            content = reader(path)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Prompt file not found: {path} ({e})",
                f'The prompt file "{_basename(path)}" is missing',
                context={"path": path, "role": SectionRole.prompt.value},
                suggestions=[
                    "Check the prompt path in the pipeline configuration",
                    "Create the prompt file",
                    "Remove the prompt from the step if it is no longer needed",
                ],
            ) from e
        sections.append(RequestSection(SectionRole.prompt, _basename(path), content))

    for path in context:
        try:
            content = reader(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable context file %s: %s", path, e)
            continue
        sections.append(RequestSection(SectionRole.context, _basename(path), content))

    if routing_options:
        sections.append(
            RequestSection(
                SectionRole.routing,
                ROUTING_FILENAME,
                format_routing_info(routing_options),
                available_next_steps=dict(routing_options),
            )
        )

    request = SECTION_SEPARATOR.join(section.render() for section in sections)
    logger.debug("Request formatted: %d sections, %d chars", len(sections), len(request))
    return request


# ── Request splitting ──────────────────────────────────────────────────────

_HEADER_RE = re.compile(
    r"^---\n"
    r"role: (?P<role>input|prompt|context|routing)\n"
    r"filename: (?P<filename>[^\n]*)\n"
    r"(?P<steps>available_next_steps:\n(?:  [^\n]*\n)*)?"
    r"---\n\n",
    re.MULTILINE,
)
_STEP_LINE_RE = re.compile(r'^  ([^:]+): (".*")$')


def _section_headers(text: str) -> list[re.Match[str]]:
    return [
        m
        for m in _HEADER_RE.finditer(text)
        if m.start() == 0 or text[max(0, m.start() - len(SECTION_SEPARATOR)) : m.start()] == SECTION_SEPARATOR
    ]


def split_request(text: str) -> list[RequestSection]:
    """Recover the sections of a request built by :func:`format_request`.

    Section bodies come back exactly as they were embedded.
    """
    headers = _section_headers(text)
    sections: list[RequestSection] = []
    for index, match in enumerate(headers):
        if index + 1 < len(headers):
            end = headers[index + 1].start() - len(SECTION_SEPARATOR)
        else:
            end = len(text)

        steps = None
        if match.group("steps"):
            steps = {}
            for line in match.group("steps").split("\n")[1:]:
                step_match = _STEP_LINE_RE.match(line)
                if step_match:
                    steps[step_match.group(1)] = json.loads(step_match.group(2))

        sections.append(
            RequestSection(
                role=SectionRole(match.group("role")),
                filename=match.group("filename"),
                content=text[match.end() : end],
                available_next_steps=steps,
            )
        )
    return sections
