"""Pytest fixtures for filetrack tests."""

from pathlib import Path

import pytest

from filetrack.store import SnapshotStore

TEST_FILE = "rtrack_test"
TEST_CONTENT = "0123456789\n"


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A directory holding one tracked file with a single line."""
    (tmp_path / TEST_FILE).write_text(TEST_CONTENT)
    return tmp_path


@pytest.fixture
def tracked_file(workspace: Path) -> Path:
    """Absolute path of the test file inside the workspace."""
    return workspace / TEST_FILE


@pytest.fixture
def store(workspace: Path) -> SnapshotStore:
    """Snapshot store rooted at the workspace."""
    return SnapshotStore(workspace)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep user config and FILETRACK_* variables out of tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for name in (
        "FILETRACK_CONTEXT_LINES",
        "FILETRACK_MAX_LINES",
        "FILETRACK_LOCK",
        "FILETRACK_COLOR",
        "FILETRACK_DEBUG",
        "FILETRACK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
