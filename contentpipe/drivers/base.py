"""Driver base class for chat-completion backends."""

from __future__ import annotations

import logging
from typing import Any

from ..wire.messages import request_to_messages

logger = logging.getLogger("contentpipe.driver")


class ChatDriver:
    """Adapter base. Implement ``complete_messages(messages, options) -> {"text": ..., "meta": {...}}``.

    The ``meta`` object should carry:

    {
        "prompt_tokens": int,
        "completion_tokens": int,
        "total_tokens": int,
        "model_name": str,
        "raw_response": dict
    }
    """

    supports_messages: bool = True

    def complete(self, request_text: str, options: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a formatted request and return the model's reply.

        The request is split into chat messages with
        :func:`~contentpipe.wire.messages.request_to_messages`.
        """
        messages = request_to_messages(request_text)
        logger.debug("[%s] sending %d message(s)", type(self).__name__, len(messages))
        return self.complete_messages(messages, dict(options or {}))

    def complete_messages(self, messages: list[dict[str, str]], options: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError
