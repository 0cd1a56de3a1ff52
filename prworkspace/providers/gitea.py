"""Gitea provider."""

from prworkspace.providers.base import Provider


class GiteaProvider(Provider):
    """Gitea provider. Uses the same PR ref layout as GitHub."""

    name = "gitea"
    default_base_url = "https://gitea.com"

    def get_pr_ref(self, pr_number: int) -> str:
        return f"refs/pull/{pr_number}/head"
