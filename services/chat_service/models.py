"""
Chat service data models for conversations, messages and enhancements.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple, Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Author of a message"""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Pending:
    """Identity of a message that the store has not acknowledged yet"""
    local_id: str


@dataclass(frozen=True)
class Settled:
    """Identity assigned by the store"""
    store_id: str


MessageIdentity = Union[Pending, Settled]


@dataclass(frozen=True)
class Message:
    """Individual message in a conversation"""
    identity: MessageIdentity
    conversation_id: str
    role: Role
    content: str
    created_at: datetime = field(default_factory=utc_now)
    unsaved: bool = False  # shown to the user but rejected by the store

    @property
    def id(self) -> str:
        if isinstance(self.identity, Pending):
            return self.identity.local_id
        return self.identity.store_id

    @property
    def is_pending(self) -> bool:
        return isinstance(self.identity, Pending)

    @property
    def is_settled(self) -> bool:
        return isinstance(self.identity, Settled)


@dataclass(frozen=True)
class Conversation:
    """Conversation metadata, messages are fetched separately"""
    id: str
    owner_id: str
    title: str
    summary: Optional[str] = None
    tags: Tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ConversationSummary:
    """Conversation with its message count, for history listings"""
    conversation: Conversation
    message_count: int = 0

    @property
    def id(self) -> str:
        return self.conversation.id

    @property
    def title(self) -> str:
        return self.conversation.title

    def tag_labels(self, limit: int = 2) -> List[str]:
        """First `limit` tags, then a "+N" label for the rest"""
        tags = list(self.conversation.tags)
        labels = tags[:limit]
        if len(tags) > limit:
            labels.append(f"+{len(tags) - limit}")
        return labels


@dataclass(frozen=True)
class Enhancement:
    """A prompt rewritten by the enhancement service"""
    id: str
    owner_id: str
    original_prompt: str
    enhanced_prompt: str
    provider: str
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "original_prompt": self.original_prompt,
            "enhanced_prompt": self.enhanced_prompt,
            "provider": self.provider,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Enhancement':
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            original_prompt=data["original_prompt"],
            enhanced_prompt=data["enhanced_prompt"],
            provider=data.get("provider") or "unknown",
            created_at=datetime.fromisoformat(data["created_at"]),
        )


class SessionState(str, Enum):
    """Conversation session states"""
    IDLE = "idle"
    AWAITING_CONVERSATION = "awaiting_conversation"
    SENDING = "sending"
    REVEALING = "revealing"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of a conversation session for the presentation layer"""
    conversation_id: Optional[str]
    messages: Tuple[Message, ...]
    state: SessionState
    is_revealing: bool
    in_flight: bool
    draft: str = ""
    last_error: Optional[Exception] = None

    @property
    def settled_messages(self) -> List[Message]:
        return [m for m in self.messages if m.is_settled]
