from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

PLACEHOLDER_USER_NAME = "Unknown User"
SYSTEM_SENDER = "System"


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    CONTACT = "contact"
    LOCATION = "location"
    STICKER = "sticker"


@dataclass(frozen=True, slots=True)
class User:
    id: str
    name: str
    phone_number: str | None = None


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    sender_id: str
    timestamp: datetime
    content: str
    type: MessageType = MessageType.TEXT
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Chat:
    id: str
    title: str
    imported_at: datetime
    messages: tuple[Message, ...]
    users: tuple[User, ...]
    first_message_at: datetime
    last_message_at: datetime

    def user_by_id(self, user_id: str) -> User | None:
        return next((user for user in self.users if user.id == user_id), None)


# Line-level variants produced by the grammar matcher.


@dataclass(frozen=True, slots=True)
class NewMessage:
    timestamp: datetime
    sender: str
    content: str
    grammar: str


@dataclass(frozen=True, slots=True)
class Continuation:
    text: str
    # Name of the check that turned a structural grammar hit into a continuation.
    rejection: str | None = None


@dataclass(frozen=True, slots=True)
class Noise:
    rejection: str | None = None


ParsedLine = NewMessage | Continuation | Noise


@dataclass(frozen=True, slots=True)
class AssembledMessage:
    sender: str
    timestamp: datetime
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


# Per-record outcomes produced while building messages.


@dataclass(frozen=True, slots=True)
class Accepted:
    message: Message


@dataclass(frozen=True, slots=True)
class Skipped:
    reason: str
    sender: str = ""


MessageOutcome = Accepted | Skipped


@dataclass(frozen=True, slots=True)
class ValidationResult:
    original_message_count: int
    valid_message_count: int
    original_user_count: int
    valid_user_count: int
    messages: tuple[Message, ...]
    users: tuple[User, ...]

    @property
    def message_validity_rate(self) -> float:
        if self.original_message_count <= 0:
            return 0.0
        return self.valid_message_count / self.original_message_count

    @property
    def user_validity_rate(self) -> float:
        if self.original_user_count <= 0:
            return 0.0
        return self.valid_user_count / self.original_user_count

    @property
    def is_reasonably_valid(self) -> bool:
        return self.message_validity_rate > 0.7 and self.user_validity_rate > 0.7

    def summary(self) -> dict[str, Any]:
        return {
            "original_messages": self.original_message_count,
            "valid_messages": self.valid_message_count,
            "original_users": self.original_user_count,
            "valid_users": self.valid_user_count,
            "message_validity_rate": round(self.message_validity_rate, 4),
            "user_validity_rate": round(self.user_validity_rate, 4),
            "is_reasonably_valid": self.is_reasonably_valid,
        }


@dataclass(slots=True)
class ImportDiagnostics:
    """Counters collected during one parse; owned by a single pipeline run."""

    encoding: str = ""
    source_format: str = "text"
    markup_strategy: str | None = None
    lines_processed: int = 0
    grammar_hits: dict[str, int] = field(default_factory=dict)
    grammar_rejections: dict[str, int] = field(default_factory=dict)
    skipped: dict[str, int] = field(default_factory=dict)
    validation: dict[str, Any] = field(default_factory=dict)
    used_empty_fallback: bool = False

    def record_hit(self, grammar: str) -> None:
        self.grammar_hits[grammar] = self.grammar_hits.get(grammar, 0) + 1

    def record_rejection(self, reason: str) -> None:
        self.grammar_rejections[reason] = self.grammar_rejections.get(reason, 0) + 1

    def record_skip(self, reason: str) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    def summary(self) -> dict[str, Any]:
        return {
            "encoding": self.encoding,
            "source_format": self.source_format,
            "markup_strategy": self.markup_strategy,
            "lines_processed": self.lines_processed,
            "grammar_hits": dict(self.grammar_hits),
            "grammar_rejections": dict(self.grammar_rejections),
            "skipped": dict(self.skipped),
            "validation": dict(self.validation),
            "used_empty_fallback": self.used_empty_fallback,
        }


@dataclass(frozen=True, slots=True)
class ImportResult:
    chat: Chat
    diagnostics: ImportDiagnostics
