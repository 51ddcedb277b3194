from __future__ import annotations

from dataclasses import dataclass

from chatsweep.models import ConversationRecord, make_identity


@dataclass(frozen=True)
class ParseContext:
    """Where a value came from; stamped onto every record parsed out of it."""

    db_path: str
    key: str
    modified: int | None = None

    def record(
        self,
        *,
        title: str,
        message_count: int,
        size_bytes: int,
        item_id: str | None = None,
        modified: int | None = None,
    ) -> ConversationRecord:
        return ConversationRecord(
            id=make_identity(self.db_path, self.key, item_id),
            title=title,
            source_db=self.db_path,
            source_key=self.key,
            item_id=item_id,
            message_count=message_count,
            size_bytes=max(size_bytes, 0),
            last_modified=modified if modified is not None else self.modified,
        )


__all__ = ["ParseContext"]
