"""Final consistency sweep over an assembled chat.

This is the authoritative filter: noise and plausibility are checked again
here no matter what earlier stages did, and the result is never empty.
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime

from chatimport.services.parsing.filters import is_noise, is_system_like_name
from chatimport.services.parsing.grammar import PlausibilityWindow
from chatimport.services.parsing.types import PLACEHOLDER_USER_NAME, Message, MessageType, User, ValidationResult

logger = logging.getLogger(__name__)

EMPTY_CHAT_NOTICE = "No messages could be parsed from this file"


class ValidationGate:
    def __init__(
        self,
        window: PlausibilityWindow,
        max_content_length: int = 65536,
        max_name_length: int = 100,
    ) -> None:
        self.window = window
        self.max_content_length = max_content_length
        self.max_name_length = max_name_length

    def is_valid_user(self, user: User) -> bool:
        if not user.id or not user.name:
            return False
        if len(user.name) > self.max_name_length:
            return False
        return not is_system_like_name(user.name)

    def is_valid_message(self, message: Message, sender: User | None, now: datetime | None = None) -> bool:
        if not message.id or not message.sender_id or sender is None:
            return False
        if not 0 <= len(message.content) <= self.max_content_length:
            return False
        if not self.window.contains(message.timestamp, now):
            return False
        return not is_noise(sender.name, message.content)

    def validate(
        self,
        messages: Sequence[Message],
        users: Sequence[User],
        now: datetime | None = None,
    ) -> ValidationResult:
        valid_users = [user for user in users if self.is_valid_user(user)]
        users_by_id = {user.id: user for user in valid_users}
        valid_messages = [
            message for message in messages if self.is_valid_message(message, users_by_id.get(message.sender_id), now)
        ]
        result = ValidationResult(
            original_message_count=len(messages),
            valid_message_count=len(valid_messages),
            original_user_count=len(users),
            valid_user_count=len(valid_users),
            messages=tuple(valid_messages),
            users=tuple(valid_users),
        )
        logger.info("chat_validated", extra=result.summary())
        return result

    def finalize(self, result: ValidationResult, imported_at: datetime) -> tuple[tuple[Message, ...], tuple[User, ...]]:
        """Sort surviving messages by time, or substitute the empty-chat notice."""
        if result.messages:
            ordered = tuple(sorted(result.messages, key=lambda m: m.timestamp))
            return ordered, result.users

        users = list(result.users)
        placeholder_user = next((user for user in users if user.name == PLACEHOLDER_USER_NAME), None)
        if placeholder_user is None:
            placeholder_user = User(id=str(uuid.uuid4()), name=PLACEHOLDER_USER_NAME)
            users.append(placeholder_user)
        notice = Message(
            id=str(uuid.uuid4()),
            sender_id=placeholder_user.id,
            timestamp=imported_at,
            content=EMPTY_CHAT_NOTICE,
            type=MessageType.TEXT,
            metadata={"placeholder": True},
        )
        logger.warning("chat_empty_after_validation", extra={"original_messages": result.original_message_count})
        return (notice,), tuple(users)
