"""Record models produced by the extraction engine.

- `ConversationRecord`: one conversation found during a scan
- `DbFileRecord`: one physical file that contributed to a scan
- `ScanResult`: everything found for one editor installation
- `Message` / `ConversationContent`: a transcript rebuilt on demand
- `EditorDescriptor`: what the editor-locating collaborator tells us
- `DeleteRequest` / `BatchDeleteResult`: the batch deletion contract

Nothing here is persisted; every model is built fresh per call.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


def make_identity(source_db: str, source_key: str, item_id: str | None = None) -> str:
    """Build a conversation identity from its location.

    ``item_id`` distinguishes conversations that share one key.
    """
    if item_id is None:
        return f"{source_db}:{source_key}"
    return f"{source_db}:{source_key}:{item_id}"


class ConversationRecord(BaseModel):
    id: str
    title: str
    source_db: str
    source_key: str
    item_id: str | None = None
    message_count: int = 0
    size_bytes: int = 0
    last_modified: int | None = None

    @field_validator("title")
    @classmethod
    def non_empty_title(cls, v: str) -> str:
        if not v:
            raise ValueError("title cannot be empty")
        return v

    @field_validator("size_bytes", "message_count")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


class DbFileRecord(BaseModel):
    path: str
    size: int
    name: str
    modified: int | None = None


class ScanResult(BaseModel):
    editor_id: str
    conversations: list[ConversationRecord] = Field(default_factory=list)
    db_files: list[DbFileRecord] = Field(default_factory=list)
    total_size: int = 0


class Message(BaseModel):
    """A single transcript entry.

    ``role`` is ``user``, ``assistant``, ``system``, or the vendor's own
    role string when it maps to none of those.
    """

    role: str
    content: str

    @field_validator("content")
    @classmethod
    def non_empty_content(cls, v: str) -> str:
        if not v:
            raise ValueError("content cannot be empty")
        return v


class ConversationContent(BaseModel):
    title: str
    messages: list[Message] = Field(default_factory=list)
    # False when the transcript was synthesized from metadata only.
    complete: bool = True


class EditorDescriptor(BaseModel):
    """One installed editor, as located by the caller."""

    id: str
    name: str = ""
    global_storage_path: Path | None = None
    workspace_storage_path: Path | None = None


class DeleteRequest(BaseModel):
    source_db: str
    source_key: str


class BatchDeleteResult(BaseModel):
    bytes_freed: int = 0
    errors: list[str] = Field(default_factory=list)


__all__ = [
    "BatchDeleteResult",
    "ConversationContent",
    "ConversationRecord",
    "DbFileRecord",
    "DeleteRequest",
    "EditorDescriptor",
    "Message",
    "ScanResult",
    "make_identity",
]
