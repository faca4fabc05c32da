"""Convert a formatted request into chat-completion messages."""

from __future__ import annotations

from .formatter import SectionRole, split_request


def request_to_messages(text: str) -> list[dict[str, str]]:
    """Map request sections to ``{"role", "content"}`` chat messages.

    ``prompt`` sections become ``system`` messages; all other sections become
    ``user`` messages.  Text that carries no sections is sent as a single user
    message.
    """
    sections = split_request(text) if "---" in text else []
    if not sections:
        return [{"role": "user", "content": text.strip()}]

    return [
        {
            "role": "system" if section.role is SectionRole.prompt else "user",
            "content": section.content.strip(),
        }
        for section in sections
    ]
