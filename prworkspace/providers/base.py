"""Git provider contract shared by GitHub, GitLab and Gitea."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from prworkspace.clone import ClonePRParams, clone_pr_with_refs
from prworkspace.config import ProviderOptions
from prworkspace.exceptions import ConfigurationError
from prworkspace.logging import format_fields, get_logger
from prworkspace.runner import Deadline, ProcessRunner, SubprocessRunner

logger = get_logger("providers")

# git@host:owner/repo
_SCP_LIKE = re.compile(r"^[\w.-]+@([^:/]+):(.+)$")


@dataclass
class CloneOptions:
    """Per-call overrides for ``Provider.clone_pr``."""

    token: str | None = None  # falls back to the provider's own token
    insecure_skip_verify: bool | None = None
    deadline: Deadline | None = None


def normalize_repo_url(url: str) -> str:
    """
    Reduce a repository URL to ``host/path``.

    Strips the scheme, a ``git@`` prefix, a ``.git`` suffix and trailing
    slashes, and turns ``git@host:path`` into ``host/path``.
    """
    url = url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[:-4]
    scp = _SCP_LIKE.match(url)
    if scp:
        return f"{scp.group(1)}/{scp.group(2)}".rstrip("/")
    for prefix in ("https://", "http://", "ssh://"):
        if url.startswith(prefix):
            url = url[len(prefix):]
    if "@" in url.split("/", 1)[0]:
        url = url.split("@", 1)[1]
    return url.rstrip("/")


class Provider(ABC):
    """
    A Git hosting service.

    Subclasses supply ``name``, ``default_base_url`` and the PR ref format;
    cloning goes through the shared clone protocol.
    """

    name: str = ""
    default_base_url: str = ""

    def __init__(
        self,
        options: ProviderOptions | None = None,
        runner: ProcessRunner | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            options: Token, base URL and TLS settings (optional)
            runner: Process runner used for cloning (default: SubprocessRunner)
        """
        options = options or ProviderOptions()
        self.token = options.token
        self.insecure_skip_verify = options.insecure_skip_verify
        self.runner = runner or SubprocessRunner()
        self._base_url = (options.base_url or "").rstrip("/")

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(
                f"invalid base URL: {self.base_url!r}", provider=self.name
            )
        self.scheme = parsed.scheme
        self.host = parsed.netloc.lower()

    @property
    def base_url(self) -> str:
        return self._base_url or self.default_base_url

    @property
    def is_default_host(self) -> bool:
        return self.base_url == self.default_base_url

    def build_repo_url(self, owner: str, repo: str) -> str:
        """Clone URL for ``owner/repo``. Never carries credentials."""
        return f"{self.scheme}://{self.host}/{owner}/{repo}.git"

    @abstractmethod
    def get_pr_ref(self, pr_number: int) -> str:
        """Ref that the hosting service exposes for a PR/MR head."""

    def clone_pr(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        dest_path: str | Path,
        options: CloneOptions | None = None,
    ) -> None:
        """
        Materialize PR/MR ``pr_number`` of ``owner/repo`` into ``dest_path``.

        Works for fork and non-fork PRs alike since it fetches the provider's
        PR ref rather than the source branch.
        """
        options = options or CloneOptions()
        token = options.token if options.token is not None else self.token
        insecure = (
            options.insecure_skip_verify
            if options.insecure_skip_verify is not None
            else self.insecure_skip_verify
        )

        logger.info(
            "Cloning PR | "
            + format_fields(provider=self.name, owner=owner, repo=repo, pr_number=pr_number)
        )
        clone_pr_with_refs(
            ClonePRParams(
                provider_name=self.name,
                repo_url=self.build_repo_url(owner, repo),
                pr_ref=self.get_pr_ref(pr_number),
                pr_number=pr_number,
                dest_path=dest_path,
                token=token,
                insecure_skip_verify=insecure,
            ),
            runner=self.runner,
            deadline=options.deadline,
        )

    def matches_url(self, repo_url: str) -> bool:
        """True if ``repo_url`` points at this provider's host."""
        if not repo_url:
            return False
        domain = normalize_repo_url(repo_url).split("/", 1)[0].lower()
        if self.is_default_host:
            return domain.endswith(self.host)
        return domain == self.host

    def parse_repo_path(self, repo_url: str) -> tuple[str, str]:
        """
        Split a repository URL or path into ``(owner, repo)``.

        Accepts ``https://host/owner/repo(.git)``, ``git@host:owner/repo``,
        ``host/owner/repo`` and ``owner/repo``. Extra path segments after the
        repository are ignored.

        Raises:
            ConfigurationError: If no owner/repo pair can be found
        """
        parts = self._path_parts(repo_url)
        if len(parts) < 2:
            raise ConfigurationError(
                f"invalid repository URL format: {repo_url}", provider=self.name
            )
        return parts[0], parts[1]

    def _path_parts(self, repo_url: str) -> list[str]:
        if not repo_url:
            raise ConfigurationError("empty repository URL", provider=self.name)
        parts = [p for p in normalize_repo_url(repo_url).split("/") if p]
        # a leading segment with a dot or port is a host, not an owner
        if parts and ("." in parts[0] or ":" in parts[0] or parts[0].lower() == self.host):
            parts = parts[1:]
        return parts

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r})"
