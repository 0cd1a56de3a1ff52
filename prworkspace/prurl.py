"""
PR/MR web URL parsing.

Supported formats:
- GitHub: ``https://github.com/owner/repo/pull/123`` (also ``/files``, ``/commits``)
- GitLab: ``https://gitlab.com/group/sub/repo/-/merge_requests/123``
  and the older form without ``/-``
- Gitea: ``https://gitea.com/owner/repo/pulls/123``
- Self-hosted instances of any of the above, either via ``register_host``
  or detected from the path shape
"""

import re
from urllib.parse import urlparse

from prworkspace.config import WorkspaceConfig
from prworkspace.exceptions import ConfigurationError
from prworkspace.types.pulls import PRInfo

_GITHUB_PATH = re.compile(r"^/([^/]+)/([^/]+)/pull/(\d+)")
_GITEA_PATH = re.compile(r"^/([^/]+)/([^/]+)/pulls?/(\d+)")
_GITLAB_PATHS = (
    re.compile(r"^/(.+?)/-/merge_requests/(\d+)"),
    re.compile(r"^/(.+?)/merge_requests/(\d+)"),
)

_PUBLIC_HOSTS = {"github.com", "gitlab.com", "gitea.com"}


class PRURLParser:
    """
    Parses PR/MR URLs into ``PRInfo``.

    Custom host mappings take priority over host-name and path detection:

        ```python
        parser = PRURLParser()
        parser.register_host("git.example.com", "gitlab")
        info = parser.parse("https://git.example.com/team/app/-/merge_requests/5")
        ```
    """

    def __init__(self) -> None:
        self._host_mappings: dict[str, str] = {}

    def register_host(self, host: str, provider: str) -> None:
        """Map ``host`` (e.g. a GitHub Enterprise domain) to ``provider``."""
        self._host_mappings[host.lower()] = provider

    def register_hosts_from_config(self, config: WorkspaceConfig) -> None:
        """Register the host of every self-hosted provider in ``config``."""
        for name, options in config.providers.items():
            if not options.base_url:
                continue
            host = urlparse(options.base_url).netloc.lower()
            if host and host not in _PUBLIC_HOSTS:
                self.register_host(host, name)

    def detect_provider(self, host: str, path: str) -> str | None:
        """Provider name for ``host``/``path``, or None if unrecognized."""
        if host in self._host_mappings:
            return self._host_mappings[host]

        for name in ("github", "gitlab", "gitea"):
            if name in host:
                return name

        if "/pull/" in path:
            return "github"
        if "/merge_requests/" in path:
            return "gitlab"
        if "/pulls/" in path:
            return "gitea"
        return None

    def parse(self, pr_url: str) -> PRInfo:
        """
        Parse a PR/MR URL.

        Raises:
            ConfigurationError: If the URL is empty, has no host, belongs to
                an unsupported provider or does not look like a PR/MR URL
        """
        pr_url = (pr_url or "").strip()
        if not pr_url:
            raise ConfigurationError("empty PR URL")

        parsed = urlparse(pr_url)
        host = parsed.netloc.lower()
        if not host:
            raise ConfigurationError(f"missing host in URL: {pr_url}")

        provider = self.detect_provider(host, parsed.path)
        if provider is None:
            raise ConfigurationError(f"unsupported Git provider for host: {host}")

        if provider == "gitlab":
            owner, repo, number = self._parse_gitlab(parsed.path)
        elif provider == "github":
            owner, repo, number = self._parse_two_level(_GITHUB_PATH, parsed.path, "GitHub PR")
        elif provider == "gitea":
            owner, repo, number = self._parse_two_level(_GITEA_PATH, parsed.path, "Gitea PR")
        else:
            raise ConfigurationError(f"unsupported provider: {provider}")

        return PRInfo(
            provider=provider,
            host=host,
            owner=owner,
            repo=repo,
            number=number,
            original_url=pr_url,
        )

    @staticmethod
    def _parse_two_level(pattern: re.Pattern, path: str, kind: str) -> tuple[str, str, int]:
        match = pattern.match(path)
        if not match:
            raise ConfigurationError(f"invalid {kind} URL format: {path}")
        return match.group(1), match.group(2), int(match.group(3))

    @staticmethod
    def _parse_gitlab(path: str) -> tuple[str, str, int]:
        for pattern in _GITLAB_PATHS:
            match = pattern.match(path)
            if match:
                break
        else:
            raise ConfigurationError(f"invalid GitLab MR URL format: {path}")

        parts = match.group(1).split("/")
        if len(parts) < 2:
            raise ConfigurationError(f"invalid GitLab path: {match.group(1)}")
        # last segment is the project, the rest is the (possibly nested) group
        return "/".join(parts[:-1]), parts[-1], int(match.group(2))


default_parser = PRURLParser()


def parse(pr_url: str) -> PRInfo:
    """Parse ``pr_url`` with the module-level default parser."""
    return default_parser.parse(pr_url)
