"""Byte decoding for chat exports of unknown encoding.

Decoding never raises: each codec in the cascade is tried in turn and the last
step filters the buffer down to printable ASCII, which always decodes.
"""

import logging
import re

logger = logging.getLogger(__name__)

INVISIBLE_CHARS_RE = re.compile("[\u200b\u200c\u200e\u200f\ufeff\u2028-\u202f\u00ad\u061c\u2066-\u2069]")

_UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")
_UTF8_BOM = b"\xef\xbb\xbf"
_PRINTABLE_BYTES = frozenset(range(32, 127)) | {9, 10, 13}


def strip_invisible(text: str) -> str:
    return INVISIBLE_CHARS_RE.sub("", text)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def clean_text(text: str) -> str:
    return normalize_newlines(strip_invisible(text))


def _filtered_ascii(data: bytes) -> str:
    return bytes(b for b in data if b in _PRINTABLE_BYTES).decode("ascii", errors="ignore")


def decode_bytes(data: bytes) -> tuple[str, str]:
    """Decode ``data`` and return ``(text, codec_label)``."""
    if not data:
        return "", "empty"

    if data.startswith(_UTF16_BOMS):
        try:
            return data.decode("utf-16"), "utf-16"
        except UnicodeDecodeError:
            logger.debug("utf16_bom_decode_failed")

    if data.startswith(_UTF8_BOM):
        data = data[len(_UTF8_BOM):]

    cascade = (
        ("utf-8", "strict", "utf-8"),
        ("utf-8", "replace", "utf-8-replace"),
        ("latin-1", "strict", "latin-1"),
        ("ascii", "ignore", "ascii-ignore"),
    )
    for codec, errors, label in cascade:
        try:
            return data.decode(codec, errors=errors), label
        except (UnicodeDecodeError, LookupError):
            logger.debug("decode_attempt_failed", extra={"codec": label})
    return _filtered_ascii(data), "ascii-filtered"


def recover_text(data: bytes) -> str:
    text, _label = decode_bytes(data)
    return clean_text(text)
