from pathlib import Path

from chatimport.core.config import get_settings
from chatimport.services.parsing.errors import ChatImportError, ChatSourceError
from chatimport.services.parsing.pipeline import ChatImportPipeline
from chatimport.services.parsing.types import Chat, ImportResult, Message, MessageType, User

__all__ = [
    "Chat",
    "ChatImportError",
    "ChatImportPipeline",
    "ChatSourceError",
    "ImportResult",
    "Message",
    "MessageType",
    "User",
    "parse_chat_export",
    "read_chat_file",
]


def read_chat_file(path: str | Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ChatSourceError(str(path), exc.strerror or exc.__class__.__name__) from exc


def parse_chat_export(path: str | Path, timezone_name: str | None = None) -> ImportResult:
    data = read_chat_file(path)
    pipeline = ChatImportPipeline.from_settings(get_settings())
    return pipeline.run(data, Path(path).name, timezone_name)
