from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from chatimport.services.parsing.types import Chat, ImportResult, Message, MessageType, User


class UserRead(BaseModel):
    id: str
    name: str
    phone_number: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserRead":
        return cls(id=user.id, name=user.name, phone_number=user.phone_number)


class MessageRead(BaseModel):
    id: str
    sender_id: str
    timestamp: datetime
    content: str = Field(max_length=65536)
    type: MessageType
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_message(cls, message: Message) -> "MessageRead":
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            timestamp=message.timestamp,
            content=message.content,
            type=message.type,
            metadata=dict(message.metadata),
        )


class ChatRead(BaseModel):
    id: str
    title: str
    imported_at: datetime
    first_message_at: datetime
    last_message_at: datetime
    users: list[UserRead]
    messages: list[MessageRead]

    @classmethod
    def from_chat(cls, chat: Chat) -> "ChatRead":
        return cls(
            id=chat.id,
            title=chat.title,
            imported_at=chat.imported_at,
            first_message_at=chat.first_message_at,
            last_message_at=chat.last_message_at,
            users=[UserRead.from_user(user) for user in chat.users],
            messages=[MessageRead.from_message(message) for message in chat.messages],
        )


class ImportResponse(BaseModel):
    chat: ChatRead
    summary: dict[str, Any]

    @classmethod
    def from_result(cls, result: ImportResult) -> "ImportResponse":
        return cls(chat=ChatRead.from_chat(result.chat), summary=result.diagnostics.summary())
