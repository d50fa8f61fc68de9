"""Provider registry and category-based provider selection."""

from pathlib import Path
from typing import Optional, Type, Union

import structlog
import yaml
from pydantic import BaseModel, Field

from neuroshop.state.models import Category

from .base_provider import BaseProvider, ProviderConfig

logger = structlog.get_logger()

CONFIG_PATH = Path(__file__).parent.parent / "config" / "providers.yaml"


class ProviderSelection(BaseModel):
    """Declarative mapping from category to the providers to query.

    Base providers are always queried. Supplemental providers are appended
    for the categories that list them, after the base set.
    """

    base: list[str]
    supplemental: dict[Category, list[str]] = Field(default_factory=dict)

    def select(self, category: Union[Category, str]) -> list[str]:
        """Provider names for a category, in submission order."""
        names = list(self.base)
        for name in self.supplemental.get(Category(category), []):
            if name not in names:
                names.append(name)
        return names


class ProviderRegistry:
    """Registry of provider classes keyed by provider name."""

    _providers: dict[str, Type[BaseProvider]] = {}
    _config: Optional[dict] = None

    @classmethod
    def register(cls, name: str):
        """Decorator to register a provider class.

        Usage:
            @ProviderRegistry.register("amazon")
            class AmazonProvider(HtmlProvider):
                ...
        """

        def decorator(provider_class: Type[BaseProvider]):
            cls._providers[name] = provider_class
            return provider_class

        return decorator

    @classmethod
    def load_config(cls) -> dict:
        """Load provider definitions from YAML (cached after first read)."""
        if cls._config is None:
            with open(CONFIG_PATH) as f:
                cls._config = yaml.safe_load(f) or {}
        return cls._config

    @classmethod
    def get_selection(cls) -> ProviderSelection:
        """Category to providers mapping from the YAML config."""
        return ProviderSelection.model_validate(cls.load_config().get("selection", {}))

    @classmethod
    def get_provider(cls, name: str) -> Optional[BaseProvider]:
        """Instantiate a registered provider with its configured settings."""
        provider_class = cls._providers.get(name)
        if not provider_class:
            return None

        for provider_config in cls.load_config().get("providers", []):
            if provider_config["name"] == name:
                return provider_class(ProviderConfig(**provider_config))

        logger.warning("Provider registered without config", provider=name)
        return None

    @classmethod
    def get_all_providers(cls) -> dict[str, BaseProvider]:
        """Instantiate every configured provider that has a registered class."""
        providers = {}
        for provider_config in cls.load_config().get("providers", []):
            provider = cls.get_provider(provider_config["name"])
            if provider is not None:
                providers[provider.name] = provider
        return providers

    @classmethod
    def list_registered(cls) -> list[str]:
        """List all registered provider names."""
        return list(cls._providers.keys())
