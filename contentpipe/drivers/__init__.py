"""Chat-completion drivers for pipeline steps."""

from .base import ChatDriver
from .openai_chat import OpenAIChatDriver
from .registry import (
    DriverFactory,
    get_driver_for_model,
    list_registered_drivers,
    register_driver,
    unregister_driver,
)

__all__ = [
    "ChatDriver",
    "DriverFactory",
    "OpenAIChatDriver",
    "get_driver_for_model",
    "list_registered_drivers",
    "register_driver",
    "unregister_driver",
]
