"""Driver registry keyed by model implementation.

Example usage:
    from contentpipe.drivers import get_driver_for_model, register_driver

    register_driver("claude", my_claude_factory, overwrite=True)
    driver = get_driver_for_model(model_config)
    reply = driver.complete(request_text)
"""

from __future__ import annotations

import logging
from typing import Callable

from ..config.models import ModelConfig, ModelImplementation
from ..exceptions import DriverError
from .base import ChatDriver
from .openai_chat import OpenAIChatDriver

logger = logging.getLogger("contentpipe.drivers.registry")

# A factory builds a driver from one model configuration
DriverFactory = Callable[[ModelConfig], ChatDriver]

_REGISTRY: dict[str, DriverFactory] = {
    ModelImplementation.chatgpt.value: OpenAIChatDriver.from_model_config,
    ModelImplementation.claude.value: OpenAIChatDriver.from_model_config,
}


def register_driver(name: str, factory: DriverFactory, *, overwrite: bool = False) -> None:
    """Register a driver factory for an implementation name.

    Raises:
        ValueError: If *name* is already registered and ``overwrite`` is False.
    """
    name = name.lower()
    if name in _REGISTRY and not overwrite:
        raise ValueError(f"Driver '{name}' is already registered. Use overwrite=True to replace it.")
    _REGISTRY[name] = factory
    logger.debug("Registered driver: %s", name)


def unregister_driver(name: str) -> bool:
    """Remove a registration. Returns True if one existed."""
    return _REGISTRY.pop(name.lower(), None) is not None


def list_registered_drivers() -> list[str]:
    return sorted(_REGISTRY)


def get_driver_for_model(model_config: ModelConfig) -> ChatDriver:
    """Build the chat driver for *model_config*.

    Raises:
        DriverError: If the implementation is a transcription backend or has
            no registered driver.
    """
    implementation = model_config.implementation
    if implementation.capability != "chat-completion":
        raise DriverError(
            f"Implementation '{implementation.value}' does not support chat completion",
            "This model configuration cannot process text requests",
            context={"implementation": implementation.value, "capability": implementation.capability},
            suggestions=["Use a chat-completion model config for text processing steps"],
        )

    factory = _REGISTRY.get(implementation.value)
    if factory is None:
        raise DriverError(
            f"No driver registered for implementation '{implementation.value}'",
            context={"implementation": implementation.value, "registered": list_registered_drivers()},
        )
    return factory(model_config)
