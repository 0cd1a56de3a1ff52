"""prworkspace - PR workspace synchronization engine for code-review bots."""

from prworkspace.clone import ClonePRParams, build_fetch_error, clone_pr_with_refs
from prworkspace.config import ProviderOptions, WorkspaceConfig, token_env_var
from prworkspace.credentials import create_credential_helper, credential_helper, git_environment
from prworkspace.exceptions import (
    AuthenticationError,
    CertificateError,
    ConfigurationError,
    CredentialHelperError,
    OperationTimeoutError,
    ProcessError,
    RefNotFoundError,
    WorkspaceError,
)
from prworkspace.git import FetchOptions, GitWorkspace
from prworkspace.logging import configure_logging, get_logger
from prworkspace.manager import PRRepositoryManager, SyncStep
from prworkspace.providers import (
    CloneOptions,
    GiteaProvider,
    GitHubProvider,
    GitLabProvider,
    Provider,
    ProviderRegistry,
    default_registry,
)
from prworkspace.prurl import PRURLParser
from prworkspace.runner import GIT_OPERATION_TIMEOUT, CommandResult, Deadline, SubprocessRunner
from prworkspace.types import PRInfo, RepositoryRequest, WorkspaceKey

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Manager
    "PRRepositoryManager",
    "SyncStep",
    "RepositoryRequest",
    "WorkspaceKey",
    # Git
    "GitWorkspace",
    "FetchOptions",
    "ClonePRParams",
    "clone_pr_with_refs",
    "build_fetch_error",
    # Credentials
    "create_credential_helper",
    "credential_helper",
    "git_environment",
    # Providers
    "Provider",
    "CloneOptions",
    "GitHubProvider",
    "GitLabProvider",
    "GiteaProvider",
    "ProviderRegistry",
    "default_registry",
    # PR URLs
    "PRURLParser",
    "PRInfo",
    # Runner
    "SubprocessRunner",
    "CommandResult",
    "Deadline",
    "GIT_OPERATION_TIMEOUT",
    # Configuration
    "WorkspaceConfig",
    "ProviderOptions",
    "token_env_var",
    # Exceptions
    "WorkspaceError",
    "ConfigurationError",
    "ProcessError",
    "OperationTimeoutError",
    "AuthenticationError",
    "RefNotFoundError",
    "CertificateError",
    "CredentialHelperError",
    # Logging
    "configure_logging",
    "get_logger",
]
