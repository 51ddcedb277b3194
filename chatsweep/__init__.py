"""Chatsweep - find, read and remove AI chats stored by code editors.

Editors built on VS Code keep their assistant conversations inside SQLite
key-value stores, mixed with unrelated settings and in several undocumented
shapes. This library locates those conversations, rebuilds transcripts on
demand, and deletes them while reclaiming space.

Example:
    from pathlib import Path
    from chatsweep import EditorDescriptor, get_content, scan

    editor = EditorDescriptor(
        id="cursor",
        global_storage_path=Path("~/.config/Cursor/User/globalStorage").expanduser(),
    )
    result = scan(editor)
    for conv in result.conversations[:5]:
        content = get_content(conv.source_db, conv.source_key, conv.item_id or "")
        print(conv.title, len(content.messages))
"""

from chatsweep.cleaner import delete_batch, delete_one
from chatsweep.content import get_content
from chatsweep.errors import (
    BatchDeleteError,
    CannotOpenError,
    ChatsweepError,
    ContentParseError,
    ConversationNotFoundError,
)
from chatsweep.models import (
    BatchDeleteResult,
    ConversationContent,
    ConversationRecord,
    DbFileRecord,
    DeleteRequest,
    EditorDescriptor,
    Message,
    ScanResult,
)
from chatsweep.scanner import scan
from chatsweep.version import __version__

__all__ = [
    "__version__",
    "BatchDeleteError",
    "BatchDeleteResult",
    "CannotOpenError",
    "ChatsweepError",
    "ContentParseError",
    "ConversationContent",
    "ConversationNotFoundError",
    "ConversationRecord",
    "DbFileRecord",
    "DeleteRequest",
    "EditorDescriptor",
    "Message",
    "ScanResult",
    "delete_batch",
    "delete_one",
    "get_content",
    "scan",
]
