"""prworkspace exception classes."""

import copy


class WorkspaceError(Exception):
    """Base exception for all prworkspace errors."""

    default_code = "WORKSPACE_ERROR"

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        stderr: str | None = None,
        cause: BaseException | None = None,
        code: str | None = None,
    ) -> None:
        self.code = code or self.default_code
        self.message = message
        self.provider = provider
        self.stderr = stderr
        self.cause = cause
        super().__init__(self._render())

    def _render(self) -> str:
        text = f"[{self.code}]"
        if self.provider:
            text += f" [{self.provider}]"
        text += f" {self.message}"
        if self.cause is not None:
            text += f": {self.cause}"
        return text

    def wrap(self, operation: str) -> "WorkspaceError":
        """
        Return an error of the same kind with ``operation`` prepended.

        The original error becomes the ``cause`` so callers can still branch
        on the error class after the manager adds its own context.
        """
        wrapped = copy.copy(self)
        wrapped.message = operation
        wrapped.cause = self
        wrapped.args = (wrapped._render(),)
        return wrapped


class ConfigurationError(WorkspaceError):
    """Raised when a request, parameter set or environment is invalid or missing."""

    default_code = "CONFIGURATION_ERROR"


class ProcessError(WorkspaceError):
    """Raised when a git subprocess exits with a non-zero status."""

    default_code = "PROCESS_ERROR"

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        stderr: str | None = None,
        cause: BaseException | None = None,
        returncode: int | None = None,
        command: list[str] | None = None,
    ) -> None:
        self.returncode = returncode
        self.command = command
        super().__init__(message, provider=provider, stderr=stderr, cause=cause)

    def _render(self) -> str:
        text = super()._render()
        if self.cause is None and self.stderr:
            text += f" (stderr: {self.stderr.strip()})"
        return text


class OperationTimeoutError(WorkspaceError):
    """Raised when a git operation outlives its deadline."""

    default_code = "TIMEOUT"

    def __init__(
        self,
        message: str,
        timeout: float | None = None,
        provider: str | None = None,
        stderr: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.timeout = timeout
        super().__init__(message, provider=provider, stderr=stderr, cause=cause)


class AuthenticationError(WorkspaceError):
    """Raised when git reports that the supplied credentials were rejected."""

    default_code = "AUTHENTICATION_FAILED"

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        stderr: str | None = None,
        cause: BaseException | None = None,
        token_env_var: str | None = None,
    ) -> None:
        self.token_env_var = token_env_var
        super().__init__(message, provider=provider, stderr=stderr, cause=cause)


class RefNotFoundError(WorkspaceError):
    """Raised when the remote does not expose the requested PR/MR ref."""

    default_code = "REF_NOT_FOUND"

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        stderr: str | None = None,
        cause: BaseException | None = None,
        pr_number: int | None = None,
    ) -> None:
        self.pr_number = pr_number
        super().__init__(message, provider=provider, stderr=stderr, cause=cause)


class CertificateError(WorkspaceError):
    """Raised when TLS certificate verification fails."""

    default_code = "CERTIFICATE_ERROR"


class CredentialHelperError(WorkspaceError):
    """Raised when the askpass script cannot be written to disk."""

    default_code = "CREDENTIAL_HELPER_ERROR"
