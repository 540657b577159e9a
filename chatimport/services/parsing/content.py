from chatimport.services.parsing.encoding import clean_text
from chatimport.services.parsing.types import MessageType

# Checked in order; the first type with a matching phrase wins.
MEDIA_PHRASES: tuple[tuple[MessageType, tuple[str, ...]], ...] = (
    (
        MessageType.IMAGE,
        ("<media omitted>", "image omitted", "photo omitted", "picture omitted", "-photo-", "img-20"),
    ),
    (MessageType.VIDEO, ("video omitted", "gif omitted", "-video-", "vid-20")),
    (MessageType.AUDIO, ("audio omitted", "voice message", "ptt", "-audio-", ".opus")),
    (MessageType.DOCUMENT, ("document omitted", "file omitted", "(file attached)", "<attached:")),
    (MessageType.CONTACT, ("contact card omitted", "contact omitted")),
    (MessageType.LOCATION, ("location:", "live location", "shared location")),
    (MessageType.STICKER, ("sticker omitted",)),
)

PLACEHOLDER_TAGS: dict[MessageType, str] = {
    MessageType.IMAGE: "<Media>",
    MessageType.VIDEO: "<Video>",
    MessageType.AUDIO: "<Audio>",
    MessageType.DOCUMENT: "<Document>",
    MessageType.CONTACT: "<Contact>",
    MessageType.STICKER: "<Sticker>",
}


def sanitize(raw: str) -> str:
    return clean_text(raw).strip()


def detect_type(content: str) -> MessageType:
    lowered = content.lower()
    for message_type, phrases in MEDIA_PHRASES:
        if any(phrase in lowered for phrase in phrases):
            return message_type
    return MessageType.TEXT


def classify(raw: str) -> tuple[MessageType, str]:
    """Return the message type and the cleaned content for ``raw``.

    Omitted-media notices collapse to a short tag such as ``<Media>``; location
    shares keep their text since it carries the place or map link.
    """
    cleaned = sanitize(raw)
    message_type = detect_type(cleaned)
    tag = PLACEHOLDER_TAGS.get(message_type)
    if tag is not None:
        return message_type, tag
    return message_type, cleaned
