"""Shared fixtures for the prworkspace test suite."""

from prworkspace.testing.conftest import (  # noqa: F401
    fake_provider,
    fake_runner,
    git_runner,
    local_provider,
    manager,
    sample_head_sha,
    source_root,
    workspace_root,
)
