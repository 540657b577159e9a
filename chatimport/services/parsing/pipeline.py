import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from pathlib import PurePath
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from chatimport.core.config import Settings
from chatimport.services.parsing.assembler import MessageAssembler
from chatimport.services.parsing.content import PLACEHOLDER_TAGS, classify
from chatimport.services.parsing.encoding import clean_text, decode_bytes
from chatimport.services.parsing.filters import is_noise
from chatimport.services.parsing.grammar import GrammarMatcher, PlausibilityWindow
from chatimport.services.parsing.identity import UserRegistry
from chatimport.services.parsing.markup import MarkupExtractor, looks_like_markup
from chatimport.services.parsing.types import (
    Accepted,
    AssembledMessage,
    Chat,
    ImportDiagnostics,
    ImportResult,
    Message,
    MessageOutcome,
    Skipped,
)
from chatimport.services.parsing.validation import ValidationGate

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "WhatsApp Chat"
TITLE_EXTENSIONS = (".txt", ".html", ".htm")
TITLE_PREFIXES = ("WhatsApp Chat with ", "WhatsApp Chat - ", "Exported chat with ", "Chat Stats - ")


def _strip_title_prefix(title: str) -> str:
    for prefix in TITLE_PREFIXES:
        if title.lower().startswith(prefix.lower()):
            return title[len(prefix):]
    return title


def title_from_filename(source_name: str) -> str:
    title = PurePath(source_name.replace("\\", "/")).name
    for extension in TITLE_EXTENSIONS:
        if title.lower().endswith(extension):
            title = title[: -len(extension)]
            break
    return _strip_title_prefix(title).strip() or DEFAULT_TITLE


def title_from_markup(document_title: str | None) -> str:
    if not document_title:
        return DEFAULT_TITLE
    return _strip_title_prefix(document_title.strip()).strip() or DEFAULT_TITLE


def resolve_timezone(timezone_name: str) -> tzinfo:
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {timezone_name}") from exc


@dataclass(frozen=True, slots=True)
class ChatImportPipeline:
    """Turns the raw bytes of one chat export into a validated ``Chat``.

    The pipeline holds configuration only; everything built during a run
    (user registry, diagnostics) is local to that ``run`` call, so one
    instance may serve concurrent imports.
    """

    window: PlausibilityWindow
    default_timezone: str = "UTC"
    max_content_length: int = 65536
    max_sender_name_length: int = 100
    sniff_sample_size: int = 1024
    progress_log_interval: int = 5000

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatImportPipeline":
        return cls(
            window=PlausibilityWindow(
                earliest=settings.earliest_message_date,
                future_tolerance=timedelta(hours=settings.future_tolerance_hours),
            ),
            default_timezone=settings.default_timezone,
            max_content_length=settings.max_content_length,
            max_sender_name_length=settings.max_sender_name_length,
            sniff_sample_size=settings.sniff_sample_size,
            progress_log_interval=settings.progress_log_interval,
        )

    def run(
        self,
        data: bytes,
        source_name: str,
        timezone_name: str | None = None,
        now: datetime | None = None,
    ) -> ImportResult:
        tz = resolve_timezone(timezone_name or self.default_timezone)
        imported_at = now.astimezone(tz) if now else datetime.now(tz)
        diagnostics = ImportDiagnostics()
        matcher = GrammarMatcher(self.window, tz, self.max_sender_name_length)
        assembler = MessageAssembler(matcher, self.progress_log_interval)

        text, diagnostics.encoding = decode_bytes(data)
        text = clean_text(text)

        known_users: list[str] = []
        if looks_like_markup(text[: self.sniff_sample_size]):
            diagnostics.source_format = "markup"
            extraction = MarkupExtractor(matcher, assembler).extract(text, diagnostics, imported_at)
            diagnostics.markup_strategy = extraction.strategy
            records = extraction.messages
            known_users = extraction.known_users
            title = title_from_markup(extraction.title)
        else:
            records = list(assembler.assemble(text.split("\n"), diagnostics, imported_at))
            title = title_from_filename(source_name)

        registry = UserRegistry()
        for name in known_users:
            registry.resolve(name)

        messages: list[Message] = []
        for record in records:
            outcome = self._build_message(record, registry)
            match outcome:
                case Accepted(message=message):
                    messages.append(message)
                case Skipped(reason=reason):
                    diagnostics.record_skip(reason)

        gate = ValidationGate(self.window, self.max_content_length, self.max_sender_name_length)
        result = gate.validate(messages, registry.users(), imported_at)
        diagnostics.validation = result.summary()
        final_messages, final_users = gate.finalize(result, imported_at)
        diagnostics.used_empty_fallback = not result.messages

        chat = Chat(
            id=str(uuid.uuid4()),
            title=title,
            imported_at=imported_at,
            messages=final_messages,
            users=final_users,
            first_message_at=final_messages[0].timestamp if final_messages else imported_at,
            last_message_at=final_messages[-1].timestamp if final_messages else imported_at,
        )
        logger.info(
            "chat_import_completed",
            extra={
                "source_format": diagnostics.source_format,
                "encoding": diagnostics.encoding,
                "messages": len(chat.messages),
                "users": len(chat.users),
            },
        )
        return ImportResult(chat=chat, diagnostics=diagnostics)

    def _build_message(self, record: AssembledMessage, registry: UserRegistry) -> MessageOutcome:
        message_type, content = classify(record.content)
        if not content:
            return Skipped("empty_content", record.sender)
        if is_noise(record.sender, content):
            return Skipped("system_message", record.sender)

        metadata = dict(record.metadata)
        if message_type in PLACEHOLDER_TAGS:
            metadata["media_omitted"] = True
        return Accepted(
            Message(
                id=str(uuid.uuid4()),
                sender_id=registry.resolve(record.sender),
                timestamp=record.timestamp,
                content=content,
                type=message_type,
                metadata=metadata,
            )
        )
