import re

NOISE_PHRASES: tuple[str, ...] = (
    # group membership
    "created group",
    "created this group",
    "you added",
    "added you",
    "you removed",
    "removed you",
    "you were added",
    "you left",
    "joined using this group's invite link",
    "joined using",
    "changed the subject",
    "changed this group",
    "changed the group",
    "group description was changed",
    "group icon changed",
    "group settings changed",
    "changed their phone number",
    # encryption banners
    "messages and calls are end-to-end encrypted",
    "messages to this group are now secured",
    "security code changed",
    "your security code with",
    # calls
    "missed voice call",
    "missed video call",
    "call ended",
    "calling...",
    "no answer",
    # deletions
    "this message was deleted",
    "you deleted this message",
    "deleted this message",
    "message deleted",
    "waiting for this message",
)

SYSTEM_NAME_FRAGMENTS: tuple[str, ...] = ("whatsapp", "system", "notification", "automated", "bot")

# Membership changes are matched as whole notices, since bare "added" or "left"
# also occur in ordinary chat.
_MEMBER = r"(?:[A-Z][\w'.-]+(?:\s[A-Z][\w'.-]*){0,3}|\+?\d[\d\s()-]{5,}\d)"
_MEMBERS = rf"(?:{_MEMBER}|you)(?:(?:,\s*|\s+and\s+)(?:{_MEMBER}|you))*"
MEMBERSHIP_NOTICE_RES: tuple[re.Pattern[str], ...] = (
    re.compile(rf"^(?:{_MEMBER}|You)\s+(?:added|removed)\s+{_MEMBERS}\.?$"),
    re.compile(rf"^(?:{_MEMBER}|You)\s+left\.?$"),
)


def contains_noise_phrase(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in NOISE_PHRASES)


def is_membership_notice(text: str) -> bool:
    stripped = text.strip()
    return any(pattern.match(stripped) for pattern in MEMBERSHIP_NOTICE_RES)


def is_system_sender(sender: str) -> bool:
    name = sender.strip()
    if name.lower() == "system":
        return True
    # Device or group identifiers, e.g. "120363025-1611772839-aa01".
    return " " not in name and name.count("-") >= 2 and len(name) > 20


def is_noise(sender: str, content: str) -> bool:
    """Tell whether a message is an administrative notice rather than chat.

    The sender field is checked against the phrase list too, because a notice
    whose text contains a colon gets split into a bogus sender by the grammars.
    """
    return (
        is_system_sender(sender)
        or contains_noise_phrase(content)
        or contains_noise_phrase(sender)
        or is_membership_notice(content)
    )


def is_system_like_name(name: str) -> bool:
    lowered = name.lower().strip()
    return any(fragment in lowered for fragment in SYSTEM_NAME_FRAGMENTS)
