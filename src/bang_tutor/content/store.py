"""
Content Store - per-topic markdown files maintained by the tutor.

Each topic (target language code) gets a directory under the content root:

    <root>/<topic>/summary.md
    <root>/<topic>/learned.md
    <root>/<topic>/review.md
    <root>/<topic>/current.md
    <root>/<topic>/plan.md
    <root>/<topic>/future.md
    <root>/<topic>/sessions/YYYY-MM-DD-NN.md
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

logger = logging.getLogger(__name__)

LANG_FILES: tuple[str, ...] = (
    "summary.md",
    "learned.md",
    "review.md",
    "current.md",
    "plan.md",
    "future.md",
)

_TOPIC_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]{0,31}$")


@dataclass
class LanguageContext:
    """Snapshot of a topic's artifacts, fed into the system prompt."""

    topic: str
    files: dict[str, str | None] = field(default_factory=dict)
    is_new: bool = True

    @property
    def onboarded(self) -> bool:
        return self.files.get("summary.md") is not None


class ContentStore:
    """Narrow read/write access to the per-topic artifacts."""

    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser().resolve()

    def topic_dir(self, topic: str) -> Path:
        if not _TOPIC_RE.match(topic):
            raise ValueError(f"Invalid topic: {topic!r}")
        return self.root / topic

    def sessions_dir(self, topic: str) -> Path:
        return self.topic_dir(topic) / "sessions"

    def ensure_topic_dir(self, topic: str) -> Path:
        """Create the topic and sessions directories if missing."""
        sessions = self.sessions_dir(topic)
        sessions.mkdir(parents=True, exist_ok=True)
        return sessions.parent

    def read_context(self, topic: str) -> LanguageContext:
        directory = self.topic_dir(topic)
        if not directory.exists():
            return LanguageContext(
                topic=topic,
                files={name: None for name in LANG_FILES},
                is_new=True,
            )

        files: dict[str, str | None] = {}
        for name in LANG_FILES:
            path = directory / name
            try:
                files[name] = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                files[name] = None
        return LanguageContext(topic=topic, files=files, is_new=False)

    def is_onboarded(self, topic: str) -> bool:
        try:
            return (self.topic_dir(topic) / "summary.md").is_file()
        except ValueError:
            return False

    def _artifact_path(self, topic: str, name: str) -> Path:
        if name not in LANG_FILES:
            raise ValueError(f"Unknown file {name!r}; expected one of {', '.join(LANG_FILES)}")
        return self.topic_dir(topic) / name

    def read_file(self, topic: str, name: str) -> str | None:
        path = self._artifact_path(topic, name)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write_file(self, topic: str, name: str, content: str) -> Path:
        path = self._artifact_path(topic, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info(f"Wrote {len(content)} characters to {topic}/{name}")
        return path

    def next_session_filename(self, topic: str, today: date | None = None) -> str:
        """First unused ``YYYY-MM-DD-NN.md`` name for today."""
        directory = self.sessions_dir(topic)
        directory.mkdir(parents=True, exist_ok=True)
        stamp = (today or date.today()).isoformat()

        num = 1
        while (directory / f"{stamp}-{num:02d}.md").exists():
            num += 1
        return f"{stamp}-{num:02d}.md"

    def write_session_file(self, topic: str, filename: str, content: str) -> Path:
        if Path(filename).name != filename or not filename.endswith(".md"):
            raise ValueError(f"Invalid session log name: {filename!r}")
        path = self.sessions_dir(topic) / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def list_session_files(self, topic: str) -> list[str]:
        directory = self.sessions_dir(topic)
        if not directory.is_dir():
            return []
        return sorted(p.name for p in directory.glob("*.md"))
