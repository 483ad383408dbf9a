"""
Tests for the per-topic content store.
"""

from datetime import date

import pytest

from bang_tutor.content import LANG_FILES, ContentStore


@pytest.fixture
def content(tmp_path):
    return ContentStore(tmp_path / "data")


def test_new_topic_context(content):
    """Test reading a topic that has no directory yet."""
    ctx = content.read_context("es")

    assert ctx.is_new is True
    assert ctx.onboarded is False
    assert set(ctx.files) == set(LANG_FILES)
    assert all(v is None for v in ctx.files.values())


def test_write_and_read_artifacts(content):
    """Test the narrow read/write interface."""
    content.write_file("es", "summary.md", "# Level: A2")

    assert content.read_file("es", "summary.md") == "# Level: A2"
    assert content.read_file("es", "plan.md") is None

    ctx = content.read_context("es")
    assert ctx.is_new is False
    assert ctx.onboarded is True
    assert ctx.files["summary.md"] == "# Level: A2"


def test_onboarded_requires_summary(content):
    """Test that onboarding is keyed on summary.md."""
    content.ensure_topic_dir("fr")
    content.write_file("fr", "plan.md", "next: passé composé")

    assert content.is_onboarded("fr") is False

    content.write_file("fr", "summary.md", "B1")
    assert content.is_onboarded("fr") is True


def test_unknown_artifact_is_rejected(content):
    """Test that only the six artifacts are writable."""
    with pytest.raises(ValueError):
        content.write_file("es", "notes.txt", "x")
    with pytest.raises(ValueError):
        content.read_file("es", "../secrets.md")


def test_invalid_topic_is_rejected(content):
    """Test topic path validation."""
    with pytest.raises(ValueError):
        content.topic_dir("../etc")
    assert content.is_onboarded("../etc") is False


def test_ensure_topic_dir_creates_sessions(content):
    """Test directory creation on session start."""
    directory = content.ensure_topic_dir("de")

    assert directory.is_dir()
    assert (directory / "sessions").is_dir()


def test_session_log_names_are_sequential(content):
    """Test dated, sequence-numbered session logs."""
    today = date(2024, 3, 5)

    first = content.next_session_filename("es", today=today)
    assert first == "2024-03-05-01.md"
    content.write_session_file("es", first, "log one")

    second = content.next_session_filename("es", today=today)
    assert second == "2024-03-05-02.md"
    content.write_session_file("es", second, "log two")

    assert content.list_session_files("es") == ["2024-03-05-01.md", "2024-03-05-02.md"]


def test_session_log_name_cannot_escape(content):
    """Test that session log names stay inside sessions/."""
    with pytest.raises(ValueError):
        content.write_session_file("es", "../summary.md", "x")
