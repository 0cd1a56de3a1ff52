"""Explicit registry of provider factories."""

from collections.abc import Callable

from prworkspace.config import ProviderOptions
from prworkspace.exceptions import ConfigurationError
from prworkspace.providers.base import Provider
from prworkspace.providers.gitea import GiteaProvider
from prworkspace.providers.github import GitHubProvider
from prworkspace.providers.gitlab import GitLabProvider
from prworkspace.runner import ProcessRunner

ProviderFactory = Callable[[ProviderOptions, "ProcessRunner | None"], Provider]


class ProviderRegistry:
    """
    Maps provider names to factories.

    Build one at startup and pass it to whatever needs to create providers;
    nothing registers itself at import time.

    Example:
        ```python
        from prworkspace.providers import default_registry

        registry = default_registry()
        gitlab = registry.create("gitlab", ProviderOptions(base_url="https://git.example.com"))
        ```
    """

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Register (or replace) the factory for ``name``."""
        self._factories[name.lower()] = factory

    def create(
        self,
        name: str,
        options: ProviderOptions | None = None,
        runner: ProcessRunner | None = None,
    ) -> Provider:
        """
        Create a provider by name.

        Raises:
            ConfigurationError: If no factory is registered under ``name``
        """
        factory = self._factories.get(name.lower())
        if factory is None:
            raise ConfigurationError("provider not registered", provider=name)
        return factory(options or ProviderOptions(), runner)

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories


def default_registry() -> ProviderRegistry:
    """Registry with the built-in GitHub, GitLab and Gitea providers."""
    registry = ProviderRegistry()
    registry.register("github", GitHubProvider)
    registry.register("gitlab", GitLabProvider)
    registry.register("gitea", GiteaProvider)
    return registry
