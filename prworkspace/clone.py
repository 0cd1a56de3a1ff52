"""
Clone protocol for first-time materialization of a PR/MR.

The four steps are:
 1. git init <dest>
 2. git remote set-url origin <url>  (falls back to ``remote add``)
 3. git fetch --no-tags origin <ref>:pr-<n>
 4. git checkout pr-<n>

Providers only contribute the remote URL and the ref format; the protocol
itself is provider-agnostic.
"""

from dataclasses import dataclass
from pathlib import Path

from prworkspace.config import token_env_var
from prworkspace.credentials import git_environment
from prworkspace.exceptions import (
    AuthenticationError,
    CertificateError,
    ConfigurationError,
    ProcessError,
    RefNotFoundError,
    WorkspaceError,
)
from prworkspace.logging import format_fields, get_logger, mask_sensitive_data
from prworkspace.runner import (
    GIT_OPERATION_TIMEOUT,
    CommandResult,
    Deadline,
    ProcessRunner,
    SubprocessRunner,
)
from prworkspace.types.workspace import pr_branch_name

logger = get_logger("clone")

_REF_NOT_FOUND_MARKERS = ("couldn't find remote ref",)
_AUTH_FAILED_MARKERS = ("Authentication failed", "could not read Username")
_CERTIFICATE_MARKERS = ("SSL certificate problem",)


@dataclass
class ClonePRParams:
    """Parameters for ``clone_pr_with_refs``."""

    provider_name: str  # used in error messages
    repo_url: str  # must not embed credentials
    pr_ref: str  # e.g. "refs/pull/7/head" or "refs/merge-requests/7/head"
    pr_number: int
    dest_path: str | Path
    token: str | None = None
    insecure_skip_verify: bool = False


def _classify(
    provider_name: str,
    pr_number: int,
    stderr: str,
    cause: WorkspaceError,
) -> WorkspaceError | None:
    if any(marker in stderr for marker in _REF_NOT_FOUND_MARKERS):
        if provider_name == "gitlab":
            message = (
                f"MR !{pr_number} not found or not accessible. For self-hosted GitLab, "
                "ensure 'merge_request_fetchable' is enabled in repository settings"
            )
        else:
            message = (
                f"PR #{pr_number} not found or not accessible. "
                "Ensure the PR exists and you have access"
            )
        return RefNotFoundError(
            message,
            provider=provider_name,
            stderr=stderr,
            cause=cause,
            pr_number=pr_number,
        )

    if any(marker in stderr for marker in _AUTH_FAILED_MARKERS):
        env_var = token_env_var(provider_name)
        return AuthenticationError(
            f"authentication failed: check your {env_var}",
            provider=provider_name,
            stderr=stderr,
            cause=cause,
            token_env_var=env_var,
        )

    if any(marker in stderr for marker in _CERTIFICATE_MARKERS):
        return CertificateError(
            "SSL certificate verification failed: consider setting insecure_skip_verify: true",
            provider=provider_name,
            stderr=stderr,
            cause=cause,
        )

    return None


def build_fetch_error(
    provider_name: str,
    pr_number: int,
    result: CommandResult,
) -> WorkspaceError:
    """
    Translate a failed PR fetch into an actionable error.

    Recognized stderr patterns become ``RefNotFoundError``,
    ``AuthenticationError`` or ``CertificateError``; anything else is a
    generic ``ProcessError``.
    """
    stderr = mask_sensitive_data(result.stderr)
    process_error = ProcessError(
        "git fetch failed",
        provider=provider_name,
        stderr=stderr,
        returncode=result.returncode,
        command=result.args,
    )

    classified = _classify(provider_name, pr_number, stderr, process_error)
    if classified is not None:
        return classified

    return ProcessError(
        f"failed to fetch PR #{pr_number}",
        provider=provider_name,
        stderr=stderr,
        cause=process_error,
        returncode=result.returncode,
        command=result.args,
    )


def classify_fetch_error(
    provider_name: str,
    pr_number: int,
    error: ProcessError,
) -> WorkspaceError:
    """
    Upgrade a fetch ``ProcessError`` from an existing checkout.

    Returns ``error`` itself when its stderr matches no known pattern.
    """
    classified = _classify(provider_name, pr_number, error.stderr or "", error)
    return classified if classified is not None else error


def clone_pr_with_refs(
    params: ClonePRParams | None,
    runner: ProcessRunner | None = None,
    deadline: Deadline | None = None,
) -> None:
    """
    Materialize a PR/MR into ``params.dest_path`` using provider refs.

    Safe to repeat against the same destination: ``git init`` re-initializes
    and the remote URL is updated in place.

    Args:
        params: Clone parameters
        runner: Process runner (default: ``SubprocessRunner``)
        deadline: Caller deadline bounding every step (optional)

    Raises:
        ConfigurationError: If params is None (before anything is spawned)
        CredentialHelperError: If the askpass script cannot be written
        RefNotFoundError, AuthenticationError, CertificateError: On a
            recognized fetch failure
        ProcessError: On any other failed step
        OperationTimeoutError: If a step outlives its deadline
    """
    if params is None:
        raise ConfigurationError("clone parameters are missing", provider="unknown")

    runner = runner or SubprocessRunner()
    deadline = deadline or Deadline.never()
    provider = params.provider_name
    dest = str(params.dest_path)
    branch = pr_branch_name(params.pr_number)

    logger.info(
        "Cloning PR using refs | "
        + format_fields(
            provider=provider,
            pr_number=params.pr_number,
            ref=params.pr_ref,
            dest=dest,
            token=params.token or "",
        )
    )

    with git_environment(params.token, params.insecure_skip_verify) as env:
        # Step 1: git init
        runner.run(["git", "init", dest], env=env, timeout=deadline.bound()).check(
            "failed to init repository", provider
        )

        # Step 2: point origin at the repository
        set_url = runner.run(
            ["git", "-C", dest, "remote", "set-url", "origin", params.repo_url],
            env=env,
            timeout=deadline.bound(),
        )
        if not set_url.ok:
            runner.run(
                ["git", "-C", dest, "remote", "add", "origin", params.repo_url],
                env=env,
                timeout=deadline.bound(),
            ).check("failed to add remote", provider)

        # Step 3: fetch the PR ref into its local branch
        fetch = runner.run(
            ["git", "-C", dest, "fetch", "--no-tags", "origin", f"{params.pr_ref}:{branch}"],
            env=env,
            timeout=deadline.bound(GIT_OPERATION_TIMEOUT),
        )
        if not fetch.ok:
            error = build_fetch_error(provider, params.pr_number, fetch)
            logger.error(f"Failed to fetch PR ref | {error}")
            raise error

        # Step 4: check out the PR branch
        runner.run(
            ["git", "-C", dest, "checkout", branch], env=env, timeout=deadline.bound()
        ).check("failed to checkout PR branch", provider)

    logger.info(f"PR cloned successfully | dest={dest}, branch={branch}")
