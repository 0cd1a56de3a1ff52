"""Git hosting providers."""

from prworkspace.providers.base import CloneOptions, Provider, normalize_repo_url
from prworkspace.providers.gitea import GiteaProvider
from prworkspace.providers.github import GitHubProvider
from prworkspace.providers.gitlab import GitLabProvider
from prworkspace.providers.registry import ProviderFactory, ProviderRegistry, default_registry

__all__ = [
    "Provider",
    "CloneOptions",
    "normalize_repo_url",
    "GitHubProvider",
    "GitLabProvider",
    "GiteaProvider",
    "ProviderRegistry",
    "ProviderFactory",
    "default_registry",
]
