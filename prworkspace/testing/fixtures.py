"""
Pytest fixtures for prworkspace testing.

Provides fakes for unit tests and helpers that build real source
repositories for integration tests against the git binary.
"""

import shutil
from pathlib import Path
from typing import Generator

import pytest

from prworkspace.manager import PRRepositoryManager
from prworkspace.runner import SubprocessRunner
from prworkspace.testing.mock import FakeRunner, RecordingRunner
from prworkspace.testing.providers import FakeProvider, LocalProvider

SAMPLE_HEAD_SHA = "deadbeef" * 5

# Identity for commits made in throwaway repositories
_GIT_IDENTITY = [
    "-c", "user.name=prworkspace-tests",
    "-c", "user.email=tests@example.com",
    "-c", "commit.gpgsign=false",
]


# ============================================================================
# Fake Fixtures
# ============================================================================


@pytest.fixture
def fake_runner() -> Generator[FakeRunner, None, None]:
    """
    Provide a FakeRunner for testing.

    Example:
        ```python
        def test_reuse(fake_runner, manager):
            fake_runner.configure("rev-parse", stdout="abc\\n")
            ...
            assert not fake_runner.was_called("fetch")
        ```
    """
    runner = FakeRunner()
    yield runner
    runner.reset()


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Provide a FakeProvider named "fake"."""
    return FakeProvider()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Provide an empty, not yet created workspace root."""
    return tmp_path / "workspace"


@pytest.fixture
def manager(fake_runner: FakeRunner) -> PRRepositoryManager:
    """Provide a PRRepositoryManager wired to ``fake_runner``."""
    return PRRepositoryManager(runner=fake_runner)


@pytest.fixture
def sample_head_sha() -> str:
    """Provide a 40-character head SHA."""
    return SAMPLE_HEAD_SHA


# ============================================================================
# Real Git Fixtures
# ============================================================================


@pytest.fixture
def git_runner() -> Generator[RecordingRunner, None, None]:
    """
    Provide a RecordingRunner around the real git binary.

    Skips the test when git is not installed.
    """
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    runner = RecordingRunner(SubprocessRunner())
    yield runner
    runner.reset()


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    """Provide a directory to hold source repositories."""
    root = tmp_path / "remotes"
    root.mkdir()
    return root


@pytest.fixture
def local_provider(source_root: Path, git_runner: RecordingRunner) -> LocalProvider:
    """Provide a LocalProvider over ``source_root`` using ``git_runner``."""
    return LocalProvider(source_root, runner=git_runner)


# ============================================================================
# Helper Functions
# ============================================================================


def _git(repo: Path, *args: str) -> str:
    result = SubprocessRunner().run(["git", *_GIT_IDENTITY, "-C", str(repo), *args])
    result.check(f"git {args[0]} failed in test repository")
    return result.stdout.strip()


def create_source_repository(source_root: Path, owner: str = "acme", repo: str = "widgets") -> Path:
    """
    Create a repository at ``source_root/owner/repo`` with one base commit.

    Returns:
        Path of the new repository
    """
    path = source_root / owner / repo
    path.mkdir(parents=True)
    _git(path, "init")
    commit_file(path, "README.md", "base\n", "base commit")
    return path


def commit_file(
    repo: Path,
    name: str,
    content: str,
    message: str,
    parent: str | None = None,
) -> str:
    """
    Commit ``content`` as ``name`` on top of ``parent`` (default: HEAD).

    Leaves HEAD detached at the new commit when ``parent`` is given.

    Returns:
        SHA of the new commit
    """
    if parent is not None:
        _git(repo, "checkout", "--detach", parent)
    (repo / name).write_text(content, encoding="utf-8")
    _git(repo, "add", name)
    _git(repo, "commit", "-m", message)
    return _git(repo, "rev-parse", "HEAD")


def set_pr_ref(repo: Path, pr_number: int, sha: str) -> None:
    """Point ``refs/pull/<pr_number>/head`` at ``sha``."""
    _git(repo, "update-ref", f"refs/pull/{pr_number}/head", sha)


def head_sha(repo: Path) -> str:
    """Commit HEAD points at in ``repo``."""
    return _git(repo, "rev-parse", "HEAD")
