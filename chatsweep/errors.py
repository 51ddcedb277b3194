"""Chatsweep error hierarchy.

All project exceptions inherit from ChatsweepError, enabling:
- ``except ChatsweepError`` at the boundary with the command layer
- Fine-grained catches inside the engine (``except CannotOpenError``)

Scans never raise these; they degrade to fewer records. Errors are reserved
for actions an operator asked for explicitly.

Hierarchy:
    ChatsweepError
    ├── StoreError
    │   └── CannotOpenError
    ├── ConversationNotFoundError
    ├── ContentParseError
    └── BatchDeleteError
"""

from __future__ import annotations


class ChatsweepError(Exception):
    """Base class for all Chatsweep errors."""


class StoreError(ChatsweepError):
    """Base class for embedded store errors."""


class CannotOpenError(StoreError):
    """The database file is missing, unreadable, or not a SQLite store."""


class ConversationNotFoundError(ChatsweepError):
    """A key, file, or conversation identity is not present in the store."""


class ContentParseError(ChatsweepError):
    """The value for an explicitly requested conversation is not valid JSON."""


class BatchDeleteError(ChatsweepError):
    """Every item of a batch deletion failed and nothing was freed."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


__all__ = [
    "ChatsweepError",
    "StoreError",
    "CannotOpenError",
    "ConversationNotFoundError",
    "ContentParseError",
    "BatchDeleteError",
]
