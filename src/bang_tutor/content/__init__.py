"""
Content module - the durable per-topic notes and their version control.
"""

from .git import CommitOutcome, GitCommitter, commit_message
from .store import LANG_FILES, ContentStore, LanguageContext

__all__ = [
    "CommitOutcome",
    "GitCommitter",
    "commit_message",
    "LANG_FILES",
    "ContentStore",
    "LanguageContext",
]
