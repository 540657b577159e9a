"""Line grammars for chat export prefixes.

Each grammar is a date/time prefix plus either an explicit ``sender: text``
tail or, for system notices, free text. The table order is the precedence:
the first grammar that matches a line structurally wins, and a timestamp that
fails the plausibility check rejects the line rather than trying later rows.
An unusable sender does let later rows try, so an overlong notice still
reaches the system grammar instead of being glued onto the previous message.

Slash dates are read month first; when the first field cannot be a month
(greater than 12) the fields are read day first instead. Dotted dates are
always day.month.year and ISO dates year-month-day.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Literal

from chatimport.services.parsing.types import SYSTEM_SENDER, Continuation, NewMessage, Noise, ParsedLine

DateOrder = Literal["slash", "dmy", "ymd"]

_DASH = r"\s*[-–—]\s*"
_TIME = r"(?P<hour>\d{1,2}):(?P<minute>\d{2})"
_TIME_SECONDS = _TIME + r"(?::(?P<second>\d{2}))?"
_MERIDIEM = r"\s*(?P<meridiem>[APap]\.?\s?[Mm]\.?)"
_SLASH_DATE = r"(?P<first>\d{1,2})/(?P<second_field>\d{1,2})/(?P<year>\d{2,4})"
_SLASH_DATE_LONG_YEAR = r"(?P<first>\d{1,2})/(?P<second_field>\d{1,2})/(?P<year>\d{4})"
_DOT_DATE = r"(?P<day>\d{1,2})\.(?P<month>\d{1,2})\.(?P<year>\d{2,4})"
_ISO_DATE = r"(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
_SENDER_TAIL = r"(?P<sender>[^:]+?):\s*(?P<content>.*)"


@dataclass(frozen=True, slots=True)
class Grammar:
    name: str
    patterns: tuple[re.Pattern[str], ...]
    date_order: tuple[DateOrder, ...]
    has_sender: bool = True


def _compile(expr: str) -> re.Pattern[str]:
    return re.compile(expr, re.DOTALL)


GRAMMARS: tuple[Grammar, ...] = (
    Grammar(
        "us_meridiem",
        (_compile(rf"^{_SLASH_DATE},?\s+{_TIME}{_MERIDIEM}{_DASH}{_SENDER_TAIL}$"),),
        ("slash",),
    ),
    Grammar(
        "slash_24h",
        (_compile(rf"^{_SLASH_DATE},\s*{_TIME}{_DASH}{_SENDER_TAIL}$"),),
        ("slash",),
    ),
    Grammar(
        "dotted_24h",
        (_compile(rf"^{_DOT_DATE},?\s+{_TIME}{_DASH}{_SENDER_TAIL}$"),),
        ("dmy",),
    ),
    Grammar(
        "iso_24h",
        (_compile(rf"^{_ISO_DATE},?\s+{_TIME}{_DASH}{_SENDER_TAIL}$"),),
        ("ymd",),
    ),
    Grammar(
        "bracketed",
        (_compile(rf"^\[{_SLASH_DATE},?\s+{_TIME_SECONDS}(?:{_MERIDIEM})?\]\s*{_SENDER_TAIL}$"),),
        ("slash",),
    ),
    Grammar(
        "business_slash",
        (_compile(rf"^{_SLASH_DATE_LONG_YEAR}\s+{_TIME}{_DASH}{_SENDER_TAIL}$"),),
        ("slash",),
    ),
    Grammar(
        "system",
        (
            _compile(rf"^{_SLASH_DATE},?\s+{_TIME}(?:{_MERIDIEM})?{_DASH}(?P<content>.+)$"),
            _compile(rf"^{_DOT_DATE},?\s+{_TIME}{_DASH}(?P<content>.+)$"),
            _compile(rf"^{_ISO_DATE},?\s+{_TIME}{_DASH}(?P<content>.+)$"),
        ),
        ("slash", "dmy", "ymd"),
        has_sender=False,
    ),
)

# Bare timestamps, as found in markup time fields and summary pages.
_TIMESTAMP_PATTERNS: tuple[tuple[re.Pattern[str], DateOrder], ...] = (
    (re.compile(rf"^\[?{_SLASH_DATE},?\s+{_TIME_SECONDS}(?:{_MERIDIEM})?\]?$"), "slash"),
    (re.compile(rf"^{_DOT_DATE},?\s+{_TIME_SECONDS}$"), "dmy"),
    (re.compile(rf"^{_ISO_DATE},?\s+{_TIME_SECONDS}$"), "ymd"),
)


def normalize_year(year: int) -> int:
    """Expand two-digit years around a pivot of 50."""
    if year >= 100:
        return year
    return 2000 + year if year < 50 else 1900 + year


def to_24_hour(hour: int, meridiem: str | None) -> int:
    if not meridiem:
        return hour
    if not 1 <= hour <= 12:
        raise ValueError(f"hour {hour} is not valid with a meridiem")
    is_pm = meridiem.strip().lower().startswith("p")
    if is_pm and hour != 12:
        return hour + 12
    if not is_pm and hour == 12:
        return 0
    return hour


def resolve_day_month(first: int, second: int) -> tuple[int, int]:
    """Return ``(day, month)`` for the two leading fields of a slash date."""
    if first > 12:
        return first, second
    return second, first


def _build_datetime(fields: dict[str, str | None], order: DateOrder, tz: tzinfo) -> datetime:
    year = normalize_year(int(fields["year"]))
    if order == "slash":
        day, month = resolve_day_month(int(fields["first"]), int(fields["second_field"]))
    else:
        day, month = int(fields["day"]), int(fields["month"])
    hour = to_24_hour(int(fields["hour"]), fields.get("meridiem"))
    second = int(fields["second"]) if fields.get("second") else 0
    return datetime(year, month, day, hour, int(fields["minute"]), second, tzinfo=tz)


@dataclass(frozen=True, slots=True)
class PlausibilityWindow:
    earliest: date
    future_tolerance: timedelta = timedelta(days=1)

    def contains(self, ts: datetime, now: datetime | None = None) -> bool:
        now = now or datetime.now(ts.tzinfo)
        lower = datetime.combine(self.earliest, datetime.min.time(), tzinfo=ts.tzinfo)
        return lower <= ts <= now + self.future_tolerance


class GrammarMatcher:
    """Classifies single transcript lines against the grammar table."""

    def __init__(self, window: PlausibilityWindow, tz: tzinfo, max_sender_length: int = 100) -> None:
        self.window = window
        self.tz = tz
        self.max_sender_length = max_sender_length

    def classify(self, line: str, now: datetime | None = None) -> ParsedLine:
        text = line.strip()
        if not text:
            return Noise()
        sender_rejected = False
        for grammar in GRAMMARS:
            for pattern, order in zip(grammar.patterns, grammar.date_order):
                match = pattern.match(text)
                if match is None:
                    continue
                parsed = self._extract(grammar, order, match, text, now)
                if parsed is not None:
                    return parsed
                # Unusable sender; later grammars, the system one included, still get a turn.
                sender_rejected = True
                break
        if sender_rejected:
            return Noise(rejection="invalid_sender")
        return Continuation(text)

    def _extract(
        self,
        grammar: Grammar,
        order: DateOrder,
        match: re.Match[str],
        text: str,
        now: datetime | None,
    ) -> ParsedLine | None:
        fields = match.groupdict()
        try:
            ts = _build_datetime(fields, order, self.tz)
        except ValueError:
            return Continuation(text, rejection="invalid_datetime")
        if not self.window.contains(ts, now):
            return Continuation(text, rejection="implausible_timestamp")

        sender = fields["sender"].strip() if grammar.has_sender else SYSTEM_SENDER
        if not sender or len(sender) > self.max_sender_length:
            return None
        return NewMessage(timestamp=ts, sender=sender, content=fields["content"].strip(), grammar=grammar.name)

    def parse_timestamp(self, raw: str, now: datetime | None = None) -> datetime | None:
        """Parse a bare date/time string, or return None when it is unusable."""
        text = raw.strip()
        if not text:
            return None
        ts: datetime | None = None
        for pattern, order in _TIMESTAMP_PATTERNS:
            match = pattern.match(text)
            if match is None:
                continue
            try:
                ts = _build_datetime(match.groupdict(), order, self.tz)
            except ValueError:
                return None
            break
        else:
            try:
                ts = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=self.tz)
        if not self.window.contains(ts, now):
            return None
        return ts
