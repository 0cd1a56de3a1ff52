"""
Repository cache manager.

Turns a ``RepositoryRequest`` into a local checkout at the requested PR head,
reusing the checkout left behind by earlier calls for the same repository.

Flow of ``ensure_repository``:
 1. Compute ``{workspace_root}/{provider}-{owner}-{repo}``
 2. Clone if the path is absent; remove and clone if it is not a valid
    repository. A fresh clone is returned as is
 3. Otherwise compare the local HEAD with the requested head SHA
 4. If they differ, run the sync steps: lock cleanup, reset/clean, detach,
    fetch, checkout, reset/clean

Only one caller may work on a given repository at a time. Pass
``locking=True`` to have the manager enforce this with a lock file.
"""

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from filelock import FileLock, Timeout

from prworkspace.clone import classify_fetch_error
from prworkspace.config import ProviderOptions
from prworkspace.exceptions import (
    ConfigurationError,
    OperationTimeoutError,
    ProcessError,
    WorkspaceError,
)
from prworkspace.git import FetchOptions, GitWorkspace
from prworkspace.logging import format_fields, get_logger
from prworkspace.prurl import PRURLParser, default_parser
from prworkspace.providers.base import CloneOptions
from prworkspace.providers.registry import ProviderRegistry, default_registry
from prworkspace.runner import GIT_OPERATION_TIMEOUT, Deadline, ProcessRunner, SubprocessRunner
from prworkspace.types.workspace import RepositoryRequest

logger = get_logger("manager")


@dataclass(frozen=True)
class SyncStep:
    """One named step of the update sequence."""

    name: str
    action: Callable[[], object]
    critical: bool = False  # critical failures end the call, others are logged
    failure_message: str = ""


class PRRepositoryManager:
    """
    Keeps one local checkout per repository in sync with a PR head.

    Example:
        ```python
        from prworkspace import PRRepositoryManager, RepositoryRequest
        from prworkspace.providers import GitHubProvider

        manager = PRRepositoryManager()
        path = manager.ensure_repository(
            RepositoryRequest(
                provider=GitHubProvider(),
                owner="acme",
                repo="widgets",
                pr_number=7,
                head_sha="deadbeef...",
                workspace_root="/srv/workspace",
                token=token,
            )
        )
        ```
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        registry: ProviderRegistry | None = None,
        git_timeout: float = GIT_OPERATION_TIMEOUT,
        locking: bool = False,
    ) -> None:
        """
        Initialize the manager.

        Args:
            runner: Process runner for the sync steps (default: SubprocessRunner).
                Cloning uses the provider's own runner.
            registry: Provider registry used by ``ensure_pr_url``
                (default: ``default_registry()``)
            git_timeout: Ceiling for fetch, reset and clean (seconds)
            locking: Hold a per-repository lock file for the whole call
        """
        self.runner = runner or SubprocessRunner()
        self.registry = registry or default_registry()
        self.git_timeout = git_timeout
        self.locking = locking

    def ensure_repository(
        self,
        request: RepositoryRequest | None,
        deadline: Deadline | None = None,
    ) -> Path:
        """
        Make sure the checkout for ``request`` exists and is at its head SHA.

        Args:
            request: Repository, PR and credentials
            deadline: Caller deadline bounding every git step (optional)

        Returns:
            Path of the ready checkout

        Raises:
            ConfigurationError: If request is None
            WorkspaceError: If cloning, fetching or checking out fails. The
                error keeps its kind (``AuthenticationError``,
                ``RefNotFoundError``, ...) and names the failed operation.
        """
        if request is None:
            raise ConfigurationError("repository request is missing")

        deadline = deadline or Deadline.never()
        root = Path(request.workspace_root)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create workspace directory | path={root}, error={e}")
            raise WorkspaceError("failed to create workspace directory", cause=e) from e

        if not self.locking:
            return self._ensure(request, deadline)

        lock_path = root / f"{request.key.dir_name}.lock"
        remaining = deadline.remaining()
        lock = FileLock(str(lock_path), timeout=-1 if remaining is None else remaining)
        try:
            with lock:
                return self._ensure(request, deadline)
        except Timeout as e:
            raise OperationTimeoutError(
                f"timed out waiting for workspace lock {lock_path}",
                timeout=remaining,
                provider=request.provider.name,
                cause=e,
            ) from e

    def _ensure(self, request: RepositoryRequest, deadline: Deadline) -> Path:
        path = request.checkout_path
        provider_name = request.provider.name

        logger.info(
            "Ensuring PR workspace | "
            + format_fields(
                provider=provider_name,
                owner=request.owner,
                repo=request.repo,
                pr_number=request.pr_number,
                head_sha=request.head_sha,
                path=path,
                token=request.token or "",
            )
        )

        if self._needs_clone(path):
            self._clone(request, path, deadline)
            logger.info(f"Workspace cloned | path={path}, branch={request.branch}")
            return path

        workspace = GitWorkspace(path, runner=self.runner, deadline=deadline, timeout=self.git_timeout)

        try:
            local_sha = workspace.get_local_head_sha()
        except ProcessError as e:
            logger.warning(f"Failed to read local HEAD, treating workspace as stale | path={path}, error={e}")
            local_sha = ""

        if local_sha and local_sha == request.head_sha:
            logger.info(f"Workspace already at requested commit | path={path}, sha={local_sha}")
            return path

        logger.info(
            "Updating workspace to PR head | "
            + format_fields(path=path, local_sha=local_sha or "(unknown)", head_sha=request.head_sha)
        )
        self.run_steps(self.sync_steps(workspace, request))
        logger.info(f"Workspace ready | path={path}, branch={request.branch}")
        return path

    def _needs_clone(self, path: Path) -> bool:
        if not path.exists() and not path.is_symlink():
            return True
        if path.is_dir() and (path / ".git").exists():
            return False

        logger.warning(f"Path exists but is not a valid git repository, removing | path={path}")
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            logger.error(f"Failed to remove invalid directory | path={path}, error={e}")
            raise WorkspaceError("failed to remove invalid directory", cause=e) from e
        return True

    def _clone(self, request: RepositoryRequest, path: Path, deadline: Deadline) -> None:
        try:
            request.provider.clone_pr(
                request.owner,
                request.repo,
                request.pr_number,
                path,
                CloneOptions(
                    token=request.token,
                    insecure_skip_verify=request.insecure_skip_verify,
                    deadline=deadline,
                ),
            )
        except WorkspaceError as e:
            logger.error(
                "Failed to clone PR | "
                + format_fields(
                    provider=request.provider.name,
                    owner=request.owner,
                    repo=request.repo,
                    pr_number=request.pr_number,
                    error=e,
                )
            )
            raise e.wrap("failed to clone PR") from e

    def sync_steps(self, workspace: GitWorkspace, request: RepositoryRequest) -> list[SyncStep]:
        """Update sequence that moves an existing checkout to the PR head."""
        provider = request.provider
        ref = provider.get_pr_ref(request.pr_number)
        fetch_options = FetchOptions(
            token=request.token,
            insecure_skip_verify=request.insecure_skip_verify,
            provider_name=provider.name,
        )

        def fetch_pr_ref() -> None:
            try:
                workspace.fetch_ref(ref, request.branch, fetch_options)
            except ProcessError as e:
                classified = classify_fetch_error(provider.name, request.pr_number, e)
                if classified is e:
                    raise
                raise classified from e

        return [
            SyncStep("cleanup_git_lock", workspace.cleanup_git_lock),
            SyncStep("reset_and_clean", workspace.reset_and_clean),
            SyncStep("checkout_detached", workspace.checkout_detached),
            SyncStep(
                "fetch_pr_ref",
                fetch_pr_ref,
                critical=True,
                failure_message="failed to fetch PR code",
            ),
            SyncStep(
                "checkout_pr_branch",
                lambda: workspace.checkout_branch(request.branch),
                critical=True,
                failure_message="failed to checkout PR branch",
            ),
            SyncStep("reset_and_clean", workspace.reset_and_clean),
        ]

    def run_steps(self, steps: list[SyncStep]) -> None:
        """
        Run ``steps`` in order.

        Raises:
            WorkspaceError: From the first critical step that fails, wrapped
                with that step's failure message
        """
        for step in steps:
            try:
                step.action()
            except WorkspaceError as e:
                if step.critical:
                    logger.error(f"{step.name} failed | error={e}")
                    raise e.wrap(step.failure_message or f"{step.name} failed") from e
                logger.warning(f"{step.name} failed, continuing anyway | error={e}")

    def ensure_pr_url(
        self,
        pr_url: str,
        head_sha: str,
        workspace_root: str | Path,
        token: str | None = None,
        insecure_skip_verify: bool = False,
        options: ProviderOptions | None = None,
        deadline: Deadline | None = None,
        parser: PRURLParser | None = None,
    ) -> Path:
        """
        Parse a PR/MR web URL and ensure its workspace.

        The provider is created through the registry. Unless ``options``
        say otherwise, a host other than the provider's public one is used
        as a self-hosted base URL.

        Raises:
            ConfigurationError: If the URL cannot be parsed or names an
                unregistered provider
        """
        info = (parser or default_parser).parse(pr_url)
        if options is None:
            options = ProviderOptions(base_url=f"https://{info.host}")
        provider = self.registry.create(info.provider, options, runner=self.runner)

        return self.ensure_repository(
            RepositoryRequest(
                provider=provider,
                owner=info.owner,
                repo=info.repo,
                pr_number=info.number,
                head_sha=head_sha,
                workspace_root=workspace_root,
                token=token,
                insecure_skip_verify=insecure_skip_verify,
            ),
            deadline=deadline,
        )
