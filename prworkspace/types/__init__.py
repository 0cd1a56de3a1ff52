"""prworkspace type definitions.

This module exports all data model types used by the package.
"""

from prworkspace.types.pulls import PRInfo
from prworkspace.types.workspace import RepositoryRequest, WorkspaceKey, pr_branch_name

__all__ = [
    # Workspace types
    "WorkspaceKey",
    "RepositoryRequest",
    "pr_branch_name",
    # Pull request types
    "PRInfo",
]
