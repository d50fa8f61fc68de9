"""Offer providers and the fan-out gateway."""

from .base_provider import BaseProvider, HtmlProvider, ProviderConfig
from .gateway import Deadline, GatewayResult, call_provider, fan_out
from .registry import ProviderRegistry, ProviderSelection

# Import marketplace providers to register them
from . import india

__all__ = [
    "BaseProvider",
    "HtmlProvider",
    "ProviderConfig",
    "Deadline",
    "GatewayResult",
    "call_provider",
    "fan_out",
    "ProviderRegistry",
    "ProviderSelection",
]
