"""
Credential helper for git operations.

Tokens are handed to git through the askpass mechanism: a short-lived
script that prints ``password=<token>`` when git asks for credentials.
The token never appears in a remote URL or in a process argument list,
and the script is deleted as soon as the single git invocation it was
created for has finished.
"""

import os
import shlex
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from prworkspace.exceptions import CredentialHelperError
from prworkspace.logging import get_logger, log_credential_operation, mask_token

logger = get_logger("credentials")

CREDENTIAL_SCRIPT_PREFIX = "git-credential-helper-"

# Placeholder user name paired with the askpass token
ASKPASS_USERNAME = "oauth2"


@dataclass(frozen=True)
class ScriptFlavor:
    """Platform-specific shape of the askpass script."""

    name: str
    suffix: str
    template: str
    restrict_mode: bool
    quote: Callable[[str], str]

    def render(self, token: str) -> str:
        """Script text whose only output is ``password=<token>``."""
        return self.template.format(answer=self.quote(f"password={token}"))


def _escape_batch(text: str) -> str:
    # caret first, it is the escape character itself
    escaped = text.replace("^", "^^").replace("%", "%%")
    for char in "&|<>":
        escaped = escaped.replace(char, f"^{char}")
    return escaped


POSIX_FLAVOR = ScriptFlavor(
    name="posix",
    suffix=".sh",
    template="#!/bin/sh\nprintf '%s\\n' {answer}\n",
    restrict_mode=True,
    quote=shlex.quote,
)

WINDOWS_FLAVOR = ScriptFlavor(
    name="windows",
    suffix=".bat",
    template="@echo off\necho {answer}\n",
    restrict_mode=False,
    quote=_escape_batch,
)


def select_script_flavor(os_name: str | None = None) -> ScriptFlavor:
    """Pick the script flavor for the host operating system."""
    if (os_name or os.name) == "nt":
        return WINDOWS_FLAVOR
    return POSIX_FLAVOR


# Selected once per process
SCRIPT_FLAVOR = select_script_flavor()


def create_credential_helper(
    token: str, flavor: ScriptFlavor | None = None
) -> tuple[str, Callable[[], None]]:
    """
    Write an askpass script that answers git's prompt with ``token``.

    Args:
        token: Bearer token to hand to git
        flavor: Script flavor (default: the host's ``SCRIPT_FLAVOR``)

    Returns:
        Tuple of (script_path, cleanup). ``cleanup`` deletes the script and is
        safe to call more than once.

    Raises:
        CredentialHelperError: If the script cannot be created, written or
            made executable. Nothing is left on disk in that case.
    """
    flavor = flavor or SCRIPT_FLAVOR

    try:
        fd, path = tempfile.mkstemp(prefix=CREDENTIAL_SCRIPT_PREFIX, suffix=flavor.suffix)
    except OSError as e:
        raise CredentialHelperError("failed to create credential helper", cause=e) from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as script:
            script.write(flavor.render(token))
    except OSError as e:
        _remove_quietly(path)
        raise CredentialHelperError("failed to write credential helper", cause=e) from e

    if flavor.restrict_mode:
        try:
            os.chmod(path, 0o700)
        except OSError as e:
            _remove_quietly(path)
            raise CredentialHelperError(
                "failed to make credential helper executable", cause=e
            ) from e

    log_credential_operation("credential helper created", token, path)

    def cleanup() -> None:
        _remove_quietly(path)
        log_credential_operation("credential helper removed", token, path)

    return path, cleanup


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove credential helper {path}: {e}")


@contextmanager
def credential_helper(token: str) -> Iterator[str]:
    """
    Context manager around ``create_credential_helper``.

    The script is removed when the block exits, whether it returns normally
    or raises.
    """
    path, cleanup = create_credential_helper(token)
    try:
        yield path
    finally:
        cleanup()


@contextmanager
def git_environment(
    token: str | None = None, insecure_skip_verify: bool = False
) -> Iterator[dict[str, str]]:
    """
    Build the environment overlay for a single git invocation.

    Args:
        token: Authentication token, wired through an askpass script (optional)
        insecure_skip_verify: Disable TLS certificate verification

    Yields:
        Environment variables to add to the git process
    """
    env = {"GIT_TERMINAL_PROMPT": "0"}
    if insecure_skip_verify:
        env["GIT_SSL_NO_VERIFY"] = "true"

    if not token:
        yield env
        return

    with credential_helper(token) as helper_path:
        env["GIT_ASKPASS"] = helper_path
        env["GIT_USERNAME"] = ASKPASS_USERNAME
        logger.debug(f"Credential helper configured | token={mask_token(token)}")
        yield env
