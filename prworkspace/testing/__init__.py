"""prworkspace testing utilities.

Provides fake runners, test providers and fixtures for testing code that
uses prworkspace without a network or, for unit tests, a git binary.
"""

from prworkspace.testing.fixtures import (
    SAMPLE_HEAD_SHA,
    commit_file,
    create_source_repository,
    head_sha,
    set_pr_ref,
)
from prworkspace.testing.mock import FakeRunner, MockCall, MockResponse, RecordingRunner
from prworkspace.testing.providers import CloneCall, FakeProvider, LocalProvider

__all__ = [
    # Runners
    "FakeRunner",
    "RecordingRunner",
    "MockCall",
    "MockResponse",
    # Providers
    "FakeProvider",
    "LocalProvider",
    "CloneCall",
    # Helper functions
    "SAMPLE_HEAD_SHA",
    "create_source_repository",
    "commit_file",
    "set_pr_ref",
    "head_sha",
]
