"""
Process runner for prworkspace.

Every git operation goes through a ``ProcessRunner``: command, arguments,
environment overlay and timeout in, captured stdout/stderr/exit status out.
The default ``SubprocessRunner`` spawns the real executable; tests swap in
``prworkspace.testing.FakeRunner``.
"""

import os
import subprocess
import time
from dataclasses import dataclass
from typing import Protocol

from prworkspace.exceptions import OperationTimeoutError, ProcessError
from prworkspace.logging import log_git_command, mask_sensitive_data

# Ceiling applied to fetch, reset and clean operations (seconds)
GIT_OPERATION_TIMEOUT = 5 * 60.0


@dataclass
class CommandResult:
    """Outcome of one external process invocation."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self, message: str, provider: str | None = None) -> "CommandResult":
        """
        Raise ``ProcessError`` carrying the captured stderr if the command failed.

        Args:
            message: Name of the failing operation
            provider: Provider name for error text (optional)

        Returns:
            self, for chaining
        """
        if not self.ok:
            raise ProcessError(
                message,
                provider=provider,
                stderr=mask_sensitive_data(self.stderr),
                returncode=self.returncode,
                command=self.args,
            )
        return self


class ProcessRunner(Protocol):
    """Narrow interface over external process execution."""

    def run(
        self,
        args: list[str],
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """
        Run ``args`` to completion.

        Must return a ``CommandResult`` for any exit status and raise
        ``OperationTimeoutError`` when ``timeout`` elapses first.
        """
        ...


@dataclass
class Deadline:
    """
    Absolute point in time after which no new work should start.

    A ``Deadline`` stands in for a caller-owned cancellation context: each
    step derives its own timeout from it, optionally capped by a ceiling.
    """

    expires_at: float | None = None

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        """Create a deadline ``seconds`` from now."""
        return cls(expires_at=time.monotonic() + seconds)

    @classmethod
    def never(cls) -> "Deadline":
        """Create a deadline that never expires."""
        return cls(expires_at=None)

    def remaining(self) -> float | None:
        """Seconds left, or None for an unbounded deadline."""
        if self.expires_at is None:
            return None
        return max(self.expires_at - time.monotonic(), 0.0)

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def bound(self, ceiling: float | None = None) -> float | None:
        """
        Timeout for one step: the smaller of ``ceiling`` and the time left.

        Raises:
            OperationTimeoutError: If the deadline has already passed
        """
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise OperationTimeoutError("deadline exceeded before the operation started")
        if remaining is None:
            return ceiling
        if ceiling is None:
            return remaining
        return min(remaining, ceiling)


class SubprocessRunner:
    """
    ``ProcessRunner`` backed by ``subprocess.run``.

    Handles:
    - Merging the environment overlay onto the current process environment
    - Killing the child when the timeout elapses
    - Debug logging of every invocation with secrets masked
    """

    def __init__(self, executable: str = "git") -> None:
        """
        Initialize the runner.

        Args:
            executable: Program substituted for a leading "git" argument
        """
        self.executable = executable

    def run(
        self,
        args: list[str],
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        cmd = list(args)
        if cmd and cmd[0] == "git":
            cmd[0] = self.executable

        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        start = time.monotonic()
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                env=full_env,
                timeout=timeout,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            log_git_command(list(args), elapsed_ms=(time.monotonic() - start) * 1000)
            process_error = ProcessError(
                f"{' '.join(args[:3])} was killed",
                stderr=mask_sensitive_data(stderr or ""),
                command=list(args),
            )
            raise OperationTimeoutError(
                f"{' '.join(args[:3])} timed out after {timeout:g}s",
                timeout=timeout,
                stderr=process_error.stderr,
                cause=process_error,
            ) from e
        except FileNotFoundError as e:
            raise ProcessError(
                f"executable not found: {cmd[0]}",
                command=list(args),
                cause=e,
            ) from e

        log_git_command(
            list(args),
            returncode=completed.returncode,
            elapsed_ms=(time.monotonic() - start) * 1000,
        )
        return CommandResult(
            args=list(args),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
