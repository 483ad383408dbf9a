"""
Version control for the content store.

Local commit is the durability boundary; pushing to the remote is
best-effort. A failed push is logged and left for the next successful
session end to carry forward.
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import structlog

from ..errors import CommitFailure, PushFailure

logger = structlog.get_logger()


@dataclass
class CommitOutcome:
    """What the commit handshake actually did."""

    committed: bool = False
    pushed: bool = False
    message: str = ""


def commit_message(topic: str, today: date | None = None) -> str:
    """Deterministic commit message for a session end."""
    return f"Session: {topic} {(today or date.today()).isoformat()}"


class GitCommitter:
    """Commits changes under ``content_dir`` inside the ``repo_dir`` work tree."""

    def __init__(
        self,
        repo_dir: str | Path,
        content_dir: str | Path,
        push_enabled: bool = True,
        timeout_seconds: float = 60.0,
    ):
        self.repo_dir = Path(repo_dir).expanduser().resolve()
        content = Path(content_dir).expanduser().resolve()
        try:
            self.pathspec = str(content.relative_to(self.repo_dir)) or "."
        except ValueError:
            self.pathspec = str(content)
        self.push_enabled = push_enabled
        self.timeout_seconds = timeout_seconds

    async def _git(self, *args: str) -> str:
        """Run a git command and return stripped stdout. Raises on failure."""
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(self.repo_dir),
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise RuntimeError(f"git {args[0]} timed out after {self.timeout_seconds} seconds")

        if process.returncode != 0:
            raise RuntimeError(
                f"git {args[0]} exited with {process.returncode}: "
                f"{stderr.decode('utf-8', errors='replace').strip()}"
            )
        return stdout.decode("utf-8", errors="replace").strip()

    async def has_changes(self) -> bool:
        status = await self._git("status", "--porcelain", "--", self.pathspec)
        return len(status) > 0

    async def commit_and_push(self, message: str) -> CommitOutcome:
        """Stage and commit content changes, then try to push.

        Returns a no-op outcome when nothing changed. Raises
        ``CommitFailure`` if status, staging or committing fails; push
        failures are swallowed.
        """
        outcome = CommitOutcome(message=message)

        try:
            if not await self.has_changes():
                logger.info("No content changes to commit")
                return outcome

            await self._git("add", "--", self.pathspec)
            await self._git("commit", "-m", message, "--", self.pathspec)
        except (OSError, RuntimeError) as e:
            raise CommitFailure(str(e)) from e

        outcome.committed = True
        logger.info("Committed content changes", message=message)

        if self.push_enabled:
            try:
                await self.push()
                outcome.pushed = True
            except PushFailure as e:
                logger.warning("Failed to push (will retry next time)", error=str(e))

        return outcome

    async def push(self) -> None:
        try:
            await self._git("push")
        except (OSError, RuntimeError) as e:
            raise PushFailure(str(e)) from e
        logger.info("Pushed content changes")
