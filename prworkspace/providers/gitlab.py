"""GitLab provider (gitlab.com and self-hosted)."""

from prworkspace.exceptions import ConfigurationError
from prworkspace.providers.base import Provider


class GitLabProvider(Provider):
    """
    GitLab provider.

    Merge request heads live under ``refs/merge-requests/<n>/head``.
    Self-hosted instances only advertise these refs when the project has
    ``merge_request_fetchable`` enabled.

    Project paths may be nested (``group/subgroup/project``): everything
    before the last segment is the owner.
    """

    name = "gitlab"
    default_base_url = "https://gitlab.com"

    def get_pr_ref(self, pr_number: int) -> str:
        return f"refs/merge-requests/{pr_number}/head"

    def parse_repo_path(self, repo_url: str) -> tuple[str, str]:
        """
        Split a project URL into ``(namespace, project)``.

        ``https://gitlab.com/group/sub/project.git`` gives
        ``("group/sub", "project")``.

        Raises:
            ConfigurationError: If the URL has fewer than two path segments
        """
        parts = self._path_parts(repo_url)
        if len(parts) < 2:
            raise ConfigurationError(
                f"invalid repository URL format: {repo_url}", provider=self.name
            )
        return "/".join(parts[:-1]), parts[-1]
