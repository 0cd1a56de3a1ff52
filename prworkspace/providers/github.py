"""GitHub and GitHub Enterprise provider."""

from prworkspace.providers.base import Provider


class GitHubProvider(Provider):
    """
    GitHub provider.

    PR heads are exposed as ``refs/pull/<n>/head``, which also covers PRs
    opened from forks.
    """

    name = "github"
    default_base_url = "https://github.com"

    def get_pr_ref(self, pr_number: int) -> str:
        return f"refs/pull/{pr_number}/head"
