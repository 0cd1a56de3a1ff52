"""
Pytest plugin for prworkspace testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
automatically discovered by pytest when this package is installed.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["prworkspace.testing.conftest"]

Or import the fixtures directly:

    from prworkspace.testing.fixtures import fake_runner, manager
"""

# Re-export all fixtures for pytest auto-discovery
from prworkspace.testing.fixtures import (
    fake_provider,
    fake_runner,
    git_runner,
    local_provider,
    manager,
    sample_head_sha,
    source_root,
    workspace_root,
)

__all__ = [
    "fake_runner",
    "fake_provider",
    "workspace_root",
    "manager",
    "sample_head_sha",
    "git_runner",
    "source_root",
    "local_provider",
]
