"""
Tests for the git commit handshake.
"""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from bang_tutor.content.git import GitCommitter, commit_message
from bang_tutor.errors import CommitFailure


def _committer(tmp_path, push_enabled=True) -> GitCommitter:
    return GitCommitter(tmp_path, tmp_path / "data", push_enabled=push_enabled)


def test_commit_message():
    """Test the deterministic commit message."""
    assert commit_message("es", today=date(2024, 2, 29)) == "Session: es 2024-02-29"


def test_pathspec_is_relative_to_repo(tmp_path):
    """Test that content inside the repo is addressed relatively."""
    assert _committer(tmp_path).pathspec == "data"


@pytest.mark.asyncio
async def test_no_changes_is_noop(tmp_path):
    """Test that a clean tree commits nothing."""
    committer = _committer(tmp_path)
    committer._git = AsyncMock(return_value="")

    outcome = await committer.commit_and_push("Session: es 2024-01-01")

    assert outcome.committed is False
    assert outcome.pushed is False
    committer._git.assert_awaited_once_with("status", "--porcelain", "--", "data")


@pytest.mark.asyncio
async def test_commit_and_push(tmp_path):
    """Test the full handshake."""
    committer = _committer(tmp_path)
    committer._git = AsyncMock(side_effect=[" M data/es/summary.md", "", "", ""])

    outcome = await committer.commit_and_push("Session: es 2024-01-01")

    assert outcome.committed is True
    assert outcome.pushed is True
    calls = [c.args for c in committer._git.await_args_list]
    assert calls == [
        ("status", "--porcelain", "--", "data"),
        ("add", "--", "data"),
        ("commit", "-m", "Session: es 2024-01-01", "--", "data"),
        ("push",),
    ]


@pytest.mark.asyncio
async def test_push_failure_is_swallowed(tmp_path):
    """Test that a failed push still reports a commit."""
    committer = _committer(tmp_path)
    committer._git = AsyncMock(
        side_effect=[" M data/es/plan.md", "", "", RuntimeError("git push exited with 128")]
    )

    outcome = await committer.commit_and_push("Session: es 2024-01-01")

    assert outcome.committed is True
    assert outcome.pushed is False


@pytest.mark.asyncio
async def test_push_disabled(tmp_path):
    """Test that pushing can be turned off."""
    committer = _committer(tmp_path, push_enabled=False)
    committer._git = AsyncMock(side_effect=[" M data/es/plan.md", "", ""])

    outcome = await committer.commit_and_push("msg")

    assert outcome.committed is True
    assert outcome.pushed is False
    assert committer._git.await_count == 3


@pytest.mark.asyncio
async def test_commit_failure_raises(tmp_path):
    """Test that staging or commit errors propagate as CommitFailure."""
    committer = _committer(tmp_path)
    committer._git = AsyncMock(side_effect=[" M data/es/plan.md", RuntimeError("index.lock exists")])

    with pytest.raises(CommitFailure):
        await committer.commit_and_push("msg")

