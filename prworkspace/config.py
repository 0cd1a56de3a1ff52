"""
Environment-driven configuration.

Environment variables:
    SC_WORKSPACE: Root directory for local checkouts (default: ./workspace)
    SC_GIT_TIMEOUT: Ceiling in seconds for fetch/reset/clean (default: 300)
    SC_<PROVIDER>_TOKEN: Access token for a provider, e.g. SC_GITLAB_TOKEN
    SC_<PROVIDER>_URL: Base URL for self-hosted instances
    SC_<PROVIDER>_INSECURE_SKIP_VERIFY: "true"/"false" to skip TLS verification
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from prworkspace.exceptions import ConfigurationError

if TYPE_CHECKING:
    from prworkspace.providers.base import Provider
    from prworkspace.providers.registry import ProviderRegistry
    from prworkspace.runner import ProcessRunner

ENV_PREFIX = "SC_"
DEFAULT_WORKSPACE = "./workspace"
DEFAULT_GIT_TIMEOUT = 5 * 60.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def token_env_var(provider_name: str) -> str:
    """Name of the environment variable expected to hold a provider's token."""
    return f"{ENV_PREFIX}{provider_name.upper()}_TOKEN"


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid {name}: {value!r}. Must be true or false")


@dataclass
class ProviderOptions:
    """Options for creating a provider instance."""

    token: str | None = None
    base_url: str | None = None  # for self-hosted instances
    insecure_skip_verify: bool = False


@dataclass
class WorkspaceConfig:
    """Runtime configuration for the workspace engine."""

    workspace_root: Path = field(default_factory=lambda: Path(DEFAULT_WORKSPACE))
    git_timeout: float = DEFAULT_GIT_TIMEOUT
    providers: dict[str, ProviderOptions] = field(default_factory=dict)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        provider_names: tuple[str, ...] = ("github", "gitlab", "gitea"),
    ) -> "WorkspaceConfig":
        """
        Create a configuration from environment variables.

        A provider is configured when its token or its URL is set.

        Args:
            environ: Mapping to read from (default: os.environ)
            provider_names: Providers to look for

        Returns:
            Populated WorkspaceConfig

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        env = os.environ if environ is None else environ

        workspace_root = Path(env.get(f"{ENV_PREFIX}WORKSPACE") or DEFAULT_WORKSPACE)

        timeout_raw = env.get(f"{ENV_PREFIX}GIT_TIMEOUT")
        git_timeout = DEFAULT_GIT_TIMEOUT
        if timeout_raw:
            try:
                git_timeout = float(timeout_raw)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid {ENV_PREFIX}GIT_TIMEOUT: {timeout_raw!r}. Must be a number of seconds"
                ) from None
            if git_timeout <= 0:
                raise ConfigurationError(
                    f"Invalid {ENV_PREFIX}GIT_TIMEOUT: {timeout_raw!r}. Must be positive"
                )

        providers: dict[str, ProviderOptions] = {}
        for name in provider_names:
            upper = name.upper()
            token = env.get(token_env_var(name)) or None
            base_url = env.get(f"{ENV_PREFIX}{upper}_URL") or None
            insecure_name = f"{ENV_PREFIX}{upper}_INSECURE_SKIP_VERIFY"
            insecure = _parse_bool(insecure_name, env.get(insecure_name, ""))
            if token or base_url:
                providers[name] = ProviderOptions(
                    token=token,
                    base_url=base_url,
                    insecure_skip_verify=insecure,
                )

        return cls(
            workspace_root=workspace_root,
            git_timeout=git_timeout,
            providers=providers,
        )

    def options_for(self, provider_name: str) -> ProviderOptions:
        """Options for ``provider_name``; anonymous defaults when unconfigured."""
        return self.providers.get(provider_name, ProviderOptions())

    def build_providers(
        self,
        registry: "ProviderRegistry",
        runner: "ProcessRunner | None" = None,
    ) -> dict[str, "Provider"]:
        """
        Instantiate every configured provider through ``registry``.

        Raises:
            ConfigurationError: If a configured provider is not registered
        """
        return {
            name: registry.create(name, options, runner=runner)
            for name, options in self.providers.items()
        }
