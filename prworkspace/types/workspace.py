"""Workspace-related data models."""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prworkspace.providers.base import Provider


def pr_branch_name(pr_number: int) -> str:
    """Local branch that holds the code of PR/MR ``pr_number``."""
    return f"pr-{pr_number}"


@dataclass(frozen=True)
class WorkspaceKey:
    """
    Identity of a local checkout: ``{provider}-{owner}-{repo}``.

    Slashes in owner or repo (nested GitLab groups) become dashes, so
    ``org/team/project`` + ``svc`` turns into ``org-team-project-svc``.
    """

    provider: str
    owner: str
    repo: str

    @property
    def dir_name(self) -> str:
        owner = self.owner.replace("/", "-")
        repo = self.repo.replace("/", "-")
        return f"{self.provider}-{owner}-{repo}"

    def path_in(self, workspace_root: str | Path) -> Path:
        """Checkout directory for this key under ``workspace_root``."""
        return Path(workspace_root) / self.dir_name

    def __str__(self) -> str:
        return self.dir_name


@dataclass(frozen=True)
class RepositoryRequest:
    """Everything needed to materialize one PR at one commit."""

    provider: "Provider"
    owner: str
    repo: str
    pr_number: int
    head_sha: str
    workspace_root: str | Path
    token: str | None = None
    insecure_skip_verify: bool = False

    @property
    def key(self) -> WorkspaceKey:
        return WorkspaceKey(self.provider.name, self.owner, self.repo)

    @property
    def branch(self) -> str:
        return pr_branch_name(self.pr_number)

    @property
    def checkout_path(self) -> Path:
        return self.key.path_in(self.workspace_root)
