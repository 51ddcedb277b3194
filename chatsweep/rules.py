"""Key rules and size ceilings for vendor key-value stores.

The ceilings are hard caps: they bound how much of any single value the
engine will materialize, and are not meant to be tuned per call.
"""

from __future__ import annotations

from dataclasses import dataclass

ITEM_TABLE = "ItemTable"
DISK_KV_TABLE = "cursorDiskKV"
# Order matters for deletion: the flat table is tried first.
KNOWN_TABLES = (ITEM_TABLE, DISK_KV_TABLE)

MAX_FULL_READ = 50_000_000
PREVIEW_LEN = 8000
AGGREGATE_MIN_SIZE = 10
ITEM_MIN_SIZE = 20
DISCOVERY_MIN_SIZE = 100
DISCOVERY_FULL_READ_MIN = 1000
COMPOSER_MIN_SIZE = 50
WORKSPACE_DB_MIN_SIZE = 1024
LOOSE_FILE_MIN_SIZE = 50

COMPOSER_KEY_PREFIX = "composerData:"
BUBBLE_KEY_PREFIX = "bubbleId:"


@dataclass(frozen=True)
class KeyRules:
    """Which keys hold chat data and which only look like they do.

    ``item_patterns`` and ``discovery_patterns`` are SQL LIKE patterns.
    """

    aggregate_keys: tuple[str, ...]
    item_patterns: tuple[str, ...]
    discovery_patterns: tuple[str, ...]
    ignored_keys: frozenset[str] = frozenset()
    ignored_prefixes: tuple[str, ...] = ()
    ignored_suffixes: tuple[str, ...] = ()
    ignored_substrings: tuple[str, ...] = ()

    def is_aggregate(self, key: str) -> bool:
        return key in self.aggregate_keys

    def is_ignored(self, key: str) -> bool:
        return (
            key in self.ignored_keys
            or key.startswith(self.ignored_prefixes)
            or key.endswith(self.ignored_suffixes)
            or any(part in key for part in self.ignored_substrings)
        )


DEFAULT_RULES = KeyRules(
    aggregate_keys=(
        "workbench.panel.aichat.view.aichat.chatdata",
        "workbench.panel.chat.view.chatView.chatdata",
        "aiChat.chatdata",
        "chat.data",
        "cascade.chatdata",
        "cascade.conversations",
        "composer.composerData",
        "interactive.sessions",
    ),
    item_patterns=(
        "composerData:%",
        "cascade.%",
        "chat.%",
        "aichat.%",
        "aiChat.%",
        "copilot.%",
        "trae.%",
        "marscode.%",
        "kiro.%",
        "memento/icube-ai-agent-storage",
        "memento/interactive-session%",
        "jetskiStateSync.agentManagerInitState",
        "antigravityUnifiedStateSync.trajectorySummaries",
    ),
    discovery_patterns=(
        "%chatdata%",
        "%chatData%",
        "%conversation%",
        "%Conversation%",
    ),
    ignored_keys=frozenset(
        {
            "chat.participantNameRegistry",
            "chat.ChatSessionStore.index",
            "chat.workspaceTransfer",
            "chat.customModes",
            "chat.setupContext",
            "composer.planRegistry",
        }
    ),
    ignored_prefixes=(
        "workbench.panel.composerChatViewPane.",
        "windsurf.cascadeViewContainerId.",
        "workbench.panel.icube.",
        "workbench.panel.chat",
        "workbench.view.trae.",
        "currentAgentData_",
        "icube_session_agent_map",
        "icube-ai-agent-storage-input-history",
        "chatHistoryNeedToBeMigrated",
        "hasAutoNewSession",
    ),
    ignored_suffixes=(".hidden", ".state"),
    ignored_substrings=("AI.agent.model", "AI.agent.modeList", "sessionRelation:"),
)


__all__ = [
    "AGGREGATE_MIN_SIZE",
    "BUBBLE_KEY_PREFIX",
    "COMPOSER_KEY_PREFIX",
    "COMPOSER_MIN_SIZE",
    "DEFAULT_RULES",
    "DISCOVERY_FULL_READ_MIN",
    "DISCOVERY_MIN_SIZE",
    "DISK_KV_TABLE",
    "ITEM_MIN_SIZE",
    "ITEM_TABLE",
    "KNOWN_TABLES",
    "KeyRules",
    "LOOSE_FILE_MIN_SIZE",
    "MAX_FULL_READ",
    "PREVIEW_LEN",
    "WORKSPACE_DB_MIN_SIZE",
]
