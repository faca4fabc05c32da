"""OpenAI-compatible chat-completion driver.

Posts to ``<base_url>/chat/completions``; works for any backend exposing the
OpenAI chat API.  Requires the `requests` package.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from ..config.models import ModelConfig
from ..exceptions import DriverError
from ..infra.settings import settings
from .base import ChatDriver

logger = logging.getLogger("contentpipe.driver.openai_chat")


class OpenAIChatDriver(ChatDriver):
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        organization: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize the driver.

        Args:
            api_key: Bearer token for the backend.
            model: Model name sent with every request.
            base_url: API root without the ``/chat/completions`` suffix.
            organization: Optional ``OpenAI-Organization`` header value.
            timeout: HTTP timeout in seconds.  Defaults to ``settings.request_timeout``.
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.organization = organization
        self.timeout = timeout

    @classmethod
    def from_model_config(cls, config: ModelConfig) -> OpenAIChatDriver:
        return cls(
            api_key=config.api_key,
            model=config.model_name,
            base_url=config.base_url,
            organization=config.organization,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        return headers

    def complete_messages(self, messages: list[dict[str, str]], options: dict[str, Any]) -> dict[str, Any]:
        model = options.get("model", self.model)
        payload: dict[str, Any] = {"model": model, "messages": messages}
        for key in ("temperature", "max_tokens"):
            if key in options:
                payload[key] = options[key]

        url = f"{self.base_url}/chat/completions"
        timeout = self.timeout if self.timeout is not None else settings.request_timeout
        try:
            response = requests.post(url, headers=self._headers(), json=payload, timeout=timeout)
            response.raise_for_status()
            resp = response.json()
        except requests.exceptions.RequestException as e:
            status = getattr(getattr(e, "response", None), "status_code", None)
            raise DriverError(
                f"Chat completion request failed: {e!s}",
                "The model backend could not be reached or rejected the request",
                context={"url": url, "model": model, "status_code": status},
            ) from e
        except ValueError as e:
            raise DriverError(
                f"Chat completion returned invalid JSON: {e!s}",
                "The model backend returned an unreadable response",
                context={"url": url, "model": model},
            ) from e

        try:
            text = resp["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError) as e:
            raise DriverError(
                "Chat completion response has no choices",
                "The model backend returned an unexpected response",
                context={"url": url, "model": model},
            ) from e

        usage = resp.get("usage", {})
        meta = {
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
            "model_name": model,
            "raw_response": resp,
        }
        logger.debug("[openai_chat] %s returned %d chars", model, len(text))
        return {"text": text, "meta": meta}
