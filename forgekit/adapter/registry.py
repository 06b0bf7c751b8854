"""Adapter registration and lookup."""

from typing import Callable, Dict

from forgekit.adapter.config import load_adapter_config
from forgekit.adapter.protocol import HostingAdapter
from forgekit.adapter.providers.github import GitHubAdapter
from forgekit.adapter.providers.gitlab import GitLabAdapter

AdapterFactory = Callable[..., HostingAdapter]


class AdapterRegistry:
    """Registry mapping provider names to adapter classes."""

    def __init__(self):
        self._adapters: Dict[str, AdapterFactory] = {}

    def register(self, name: str, factory: AdapterFactory) -> None:
        """Register an adapter factory under a provider name.

        Args:
            name: Provider name, e.g. "gitlab"
            factory: Callable taking (config, owner, repository, client=None)
        """
        self._adapters[name] = factory

    def get(self, name: str) -> AdapterFactory:
        """Get an adapter factory by provider name.

        Raises:
            ValueError: If the provider is not registered
        """
        if name not in self._adapters:
            available = ", ".join(sorted(self._adapters.keys()))
            raise ValueError(
                f"Unknown adapter '{name}'. "
                f"Available adapters: {available or 'none'}"
            )
        return self._adapters[name]

    def list(self) -> list[str]:
        return list(self._adapters.keys())


_registry = AdapterRegistry()
_registry.register("github", GitHubAdapter)
_registry.register("gitlab", GitLabAdapter)


def register_adapter(name: str, factory: AdapterFactory) -> None:
    """Register an adapter in the global registry."""
    _registry.register(name, factory)


def list_adapters() -> list[str]:
    """List all registered provider names."""
    return _registry.list()


def create_adapter(
    name: str,
    config: dict,
    owner: str,
    repository: str,
    client=None,
) -> HostingAdapter:
    """Instantiate the adapter registered under ``name``."""
    return _registry.get(name)(config, owner, repository, client=client)


def from_config(
    owner: str,
    repository: str,
    adapter_name: str | None = None,
    config_path: str | None = None,
) -> HostingAdapter:
    """
    Create an adapter from the configuration file.

    Args:
        owner: Repository owner / namespace
        repository: Repository name
        adapter_name: Provider to use; defaults to the config's default_adapter
        config_path: Optional path to config file

    Raises:
        ValueError: If the adapter is unknown or missing from config
    """
    config = load_adapter_config(config_path)
    name = adapter_name or config.get("default_adapter", "github")
    adapters = config.get("adapters", {})
    if name not in adapters:
        raise ValueError(f"Adapter '{name}' not found in config")
    return create_adapter(name, adapters[name], owner, repository)
