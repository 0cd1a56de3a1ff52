"""Pull/merge request data models."""

from dataclasses import dataclass

from prworkspace.types.workspace import WorkspaceKey


@dataclass
class PRInfo:
    """Information parsed from a PR/MR web URL."""

    provider: str  # "github", "gitlab", ...
    host: str
    owner: str  # may contain "/" for nested GitLab groups
    repo: str
    number: int
    original_url: str = ""

    @property
    def key(self) -> WorkspaceKey:
        return WorkspaceKey(self.provider, self.owner, self.repo)

    def clone_dir_name(self) -> str:
        """Checkout directory name shared by every PR of this repository."""
        return self.key.dir_name

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number} ({self.provider})"
