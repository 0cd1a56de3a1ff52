"""
Git primitives for an existing local checkout.

Every operation spawns exactly one git process (two for ``reset_and_clean``)
and blocks until it exits or its timeout fires. Fetch, reset and clean are
bounded by ``GIT_OPERATION_TIMEOUT`` intersected with the caller's deadline.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from prworkspace.credentials import git_environment
from prworkspace.exceptions import ProcessError, WorkspaceError
from prworkspace.logging import format_fields, get_logger, mask_sensitive_data
from prworkspace.runner import (
    GIT_OPERATION_TIMEOUT,
    CommandResult,
    Deadline,
    ProcessRunner,
    SubprocessRunner,
)

logger = get_logger("git")

_NON_FAST_FORWARD_MARKER = "non-fast-forward"
_AUTH_FAILURE_MARKERS = (
    "could not read Username",
    "Authentication failed",
    "not found or you don't have permission",
)


@dataclass
class FetchOptions:
    """Authentication and transport options for a fetch."""

    token: str | None = None  # passed via GIT_ASKPASS, never in the URL
    insecure_skip_verify: bool = False
    provider_name: str | None = None  # for logging and error messages


class GitWorkspace:
    """
    Operations on one local checkout.

    Example:
        ```python
        from prworkspace.git import FetchOptions, GitWorkspace

        ws = GitWorkspace("/srv/workspace/github-acme-widgets")
        ws.checkout_detached()
        ws.fetch_ref("refs/pull/7/head", "pr-7", FetchOptions(token=token))
        ws.checkout_branch("pr-7")
        ```
    """

    def __init__(
        self,
        path: str | Path,
        runner: ProcessRunner | None = None,
        deadline: Deadline | None = None,
        timeout: float = GIT_OPERATION_TIMEOUT,
    ) -> None:
        """
        Initialize the workspace.

        Args:
            path: Checkout directory
            runner: Process runner (default: SubprocessRunner)
            deadline: Caller deadline bounding every operation (optional)
            timeout: Ceiling for fetch, reset and clean (seconds)
        """
        self.path = Path(path)
        self.runner = runner or SubprocessRunner()
        self.deadline = deadline or Deadline.never()
        self.timeout = timeout

    def _git(
        self,
        *args: str,
        env: dict[str, str] | None = None,
        bounded: bool = False,
    ) -> CommandResult:
        timeout = self.deadline.bound(self.timeout if bounded else None)
        return self.runner.run(
            ["git", "-C", str(self.path), *args],
            env=env,
            timeout=timeout,
        )

    def get_local_head_sha(self) -> str:
        """
        Get the commit HEAD points at.

        Raises:
            ProcessError: If the directory is not a valid repository
        """
        result = self._git("rev-parse", "HEAD").check("failed to get local HEAD SHA")
        return result.stdout.strip()

    def checkout_detached(self) -> None:
        """
        Detach HEAD from any branch.

        Needed before fetching into a branch that may be checked out, which
        git otherwise refuses.
        """
        self._git("checkout", "--detach").check("failed to checkout to detached HEAD")

    def fetch_ref(
        self,
        ref: str,
        local_branch: str,
        options: FetchOptions | None = None,
    ) -> None:
        """
        Fetch ``ref`` from origin into ``local_branch``.

        If the fetch is rejected as non-fast-forward (the PR was rebased or
        force-pushed), the local branch is deleted and the fetch retried
        exactly once.

        Raises:
            ProcessError: If the fetch fails, or fails again after the retry
            OperationTimeoutError: If the fetch outlives its deadline
            CredentialHelperError: If the askpass script cannot be written
        """
        options = options or FetchOptions()
        logger.debug(
            "Fetching PR ref | "
            + format_fields(
                path=self.path,
                ref=ref,
                local_branch=local_branch,
                provider=options.provider_name,
                token=options.token or "",
            )
        )

        try:
            self._fetch_once(ref, local_branch, options)
            return
        except ProcessError as e:
            if _NON_FAST_FORWARD_MARKER not in (e.stderr or ""):
                raise
            first_error = e

        logger.info(
            "Fetch failed due to non-fast-forward, deleting local branch and retrying | "
            + format_fields(path=self.path, ref=ref, local_branch=local_branch)
        )
        try:
            self.delete_local_branch(local_branch)
        except WorkspaceError as e:
            raise ProcessError(
                f"failed to delete local branch before retry (original error: {first_error})",
                provider=options.provider_name,
                stderr=e.stderr,
                cause=e,
            ) from e

        try:
            self._fetch_once(ref, local_branch, options)
        except ProcessError as e:
            raise e.wrap("failed to fetch PR ref after retry") from e

        logger.info(
            "Successfully fetched PR ref after deleting local branch | "
            + format_fields(path=self.path, ref=ref)
        )

    def _fetch_once(self, ref: str, local_branch: str, options: FetchOptions) -> None:
        with git_environment(options.token, options.insecure_skip_verify) as env:
            result = self._git(
                "fetch", "--no-tags", "origin", f"{ref}:{local_branch}",
                env=env,
                bounded=True,
            )

        if result.ok:
            return

        stderr = mask_sensitive_data(result.stderr, [options.token or ""])
        if any(marker in stderr for marker in _AUTH_FAILURE_MARKERS):
            logger.error(
                "Git fetch authentication failed | "
                + format_fields(
                    path=self.path,
                    ref=ref,
                    token=options.token or "",
                    stderr=stderr.strip(),
                )
            )
        raise ProcessError(
            "failed to fetch PR ref",
            provider=options.provider_name,
            stderr=stderr,
            returncode=result.returncode,
            command=result.args,
        )

    def checkout_branch(self, branch: str) -> None:
        """Switch HEAD to the existing local ``branch``."""
        self._git("checkout", branch).check(f"failed to checkout branch {branch}")

    def delete_local_branch(self, branch: str) -> None:
        """
        Force-delete ``branch``.

        A branch that does not exist counts as deleted.
        """
        result = self._git("branch", "-D", branch)
        if result.ok:
            logger.debug("Deleted local branch | " + format_fields(path=self.path, branch=branch))
            return
        # git localizes this message; "未发现" is the zh_CN form
        if "not found" in result.stderr or "未发现" in result.stderr:
            return
        result.check(f"failed to delete branch {branch}")

    def cleanup_git_lock(self) -> bool:
        """
        Remove a stale ``.git/index.lock`` left behind by a crashed git process.

        Assumes no other git process is working in this checkout.

        Returns:
            True if a lock file was removed

        Raises:
            WorkspaceError: If the lock file exists but cannot be removed
        """
        lock_path = self.path / ".git" / "index.lock"
        if not lock_path.exists():
            return False

        logger.warning(f"Removing stale git index lock file | path={lock_path}")
        try:
            os.remove(lock_path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise WorkspaceError("failed to remove git lock file", cause=e) from e
        return True

    def reset_and_clean(self) -> None:
        """Discard local changes (``reset --hard``) and untracked files (``clean -fd``)."""
        self._git("reset", "--hard", bounded=True).check("git reset --hard failed")
        self._git("clean", "-fd", bounded=True).check("git clean -fd failed")
        logger.info(f"Workspace reset and cleaned | path={self.path}")
