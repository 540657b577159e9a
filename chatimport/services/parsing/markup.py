"""HTML chat exports.

Markup is tried with progressively weaker strategies: explicit message
elements, then leaf blocks whose text looks like a transcript line, then the
whole document flattened to text, and finally the aggregate stats page which
only carries counters and the first/last message dates.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime

from bs4 import BeautifulSoup, Tag

from chatimport.services.parsing.assembler import MessageAssembler
from chatimport.services.parsing.grammar import GrammarMatcher
from chatimport.services.parsing.types import AssembledMessage, ImportDiagnostics, NewMessage

logger = logging.getLogger(__name__)

MARKUP_ROOT_TAGS = ("<html", "<!doctype html")
EXPORT_BANNERS = ("whatsapp chat", "chat stats")

MESSAGE_CONTAINER_SELECTORS = (".message", ".msg", "[data-id]", ".chat-message", ".whatsapp-message")
SENDER_SELECTORS = (".sender", "[data-sender]", ".author", ".from")
CONTENT_SELECTORS = (".message-text", ".text", ".content", ".body")
TIME_SELECTORS = (".time", "time", "[data-time]", ".timestamp", ".date")
BLOCK_TAGS = ("div", "p", "li")

STATS_USERS_SELECTOR = "#num_mensajes .dato"
STATS_FIRST_SELECTOR = "#primer_mensaje .dato"
STATS_LAST_SELECTOR = "#ultimo_mensaje .dato"
# The stats page writes its bounds as dd/mm/yyyy hh:mm whatever the chat locale.
STATS_DATE_RE = re.compile(
    r"(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4}),?\s+(?P<hour>\d{1,2}):(?P<minute>\d{2})"
)


def looks_like_markup(sample: str) -> bool:
    lowered = sample.lower()
    has_root = any(tag in lowered for tag in MARKUP_ROOT_TAGS)
    return has_root and any(banner in lowered for banner in EXPORT_BANNERS)


@dataclass(slots=True)
class MarkupExtraction:
    title: str | None
    strategy: str | None
    messages: list[AssembledMessage] = field(default_factory=list)
    # Participants known from the page even when they have no messages.
    known_users: list[str] = field(default_factory=list)


def _text(element: Tag | None) -> str:
    if element is None:
        return ""
    return element.get_text(" ", strip=True)


def _select_first(element: Tag, selectors: tuple[str, ...]) -> Tag | None:
    for selector in selectors:
        found = element.select_one(selector)
        if found is not None:
            return found
    return None


class MarkupExtractor:
    def __init__(self, matcher: GrammarMatcher, assembler: MessageAssembler) -> None:
        self.matcher = matcher
        self.assembler = assembler

    def extract(
        self,
        document: str,
        diagnostics: ImportDiagnostics | None = None,
        now: datetime | None = None,
    ) -> MarkupExtraction:
        diagnostics = diagnostics if diagnostics is not None else ImportDiagnostics()
        soup = BeautifulSoup(document, "lxml")
        title = soup.title.get_text(strip=True) if soup.title else None

        strategies = (
            ("structured", self._structured),
            ("blocks", self._blocks),
            ("flattened", self._flattened),
            ("summary", self._summary),
        )
        for name, strategy in strategies:
            extraction = strategy(soup, diagnostics, now)
            if extraction.messages:
                extraction.title = title
                extraction.strategy = name
                logger.info("markup_strategy_selected", extra={"strategy": name, "messages": len(extraction.messages)})
                return extraction
            logger.debug("markup_strategy_empty", extra={"strategy": name})
        return MarkupExtraction(title=title, strategy=None)

    def _structured(self, soup: BeautifulSoup, diagnostics: ImportDiagnostics, now: datetime | None) -> MarkupExtraction:
        extraction = MarkupExtraction(title=None, strategy=None)
        for selector in MESSAGE_CONTAINER_SELECTORS:
            containers = soup.select(selector)
            if not containers:
                continue
            for container in containers:
                record = self._structured_message(container, diagnostics, now)
                if record is not None:
                    extraction.messages.append(record)
            if extraction.messages:
                break
        return extraction

    def _structured_message(
        self, container: Tag, diagnostics: ImportDiagnostics, now: datetime | None
    ) -> AssembledMessage | None:
        sender_el = _select_first(container, SENDER_SELECTORS)
        content_el = _select_first(container, CONTENT_SELECTORS)
        time_el = _select_first(container, TIME_SELECTORS)
        if content_el is None or time_el is None:
            return None

        raw_time = time_el.get("datetime") or time_el.get("data-time") or _text(time_el)
        timestamp = self.matcher.parse_timestamp(str(raw_time), now)
        if timestamp is None:
            diagnostics.record_skip("unparseable_timestamp")
            return None
        sender = str(sender_el.get("data-sender") or _text(sender_el)) if sender_el is not None else ""
        return AssembledMessage(
            sender=sender.strip().rstrip(":").strip(),
            timestamp=timestamp,
            content=content_el.get_text("\n", strip=True),
        )

    def _blocks(self, soup: BeautifulSoup, diagnostics: ImportDiagnostics, now: datetime | None) -> MarkupExtraction:
        lines: list[str] = []
        for element in soup.find_all(BLOCK_TAGS):
            if element.find(BLOCK_TAGS) is not None:
                continue
            text = element.get_text("\n", strip=True)
            if not text:
                continue
            first_line = text.split("\n", 1)[0]
            if isinstance(self.matcher.classify(first_line, now), NewMessage):
                lines.extend(text.split("\n"))
        extraction = MarkupExtraction(title=None, strategy=None)
        extraction.messages.extend(self.assembler.assemble(lines, diagnostics, now))
        return extraction

    def _flattened(self, soup: BeautifulSoup, diagnostics: ImportDiagnostics, now: datetime | None) -> MarkupExtraction:
        root = soup.body or soup
        for br in root.find_all("br"):
            br.replace_with("\n")
        for block in root.find_all(BLOCK_TAGS + ("tr",)):
            block.append("\n")
        extraction = MarkupExtraction(title=None, strategy=None)
        text = root.get_text()
        extraction.messages.extend(self.assembler.assemble(text.split("\n"), diagnostics, now))
        return extraction

    def _summary(self, soup: BeautifulSoup, diagnostics: ImportDiagnostics, now: datetime | None) -> MarkupExtraction:
        extraction = MarkupExtraction(title=None, strategy=None)
        for element in soup.select(STATS_USERS_SELECTOR):
            parts = _text(element).split(" : ", 1)
            if len(parts) == 2 and parts[1].strip():
                extraction.known_users.append(parts[1].strip())

        first = self._stats_date(soup, STATS_FIRST_SELECTOR, now)
        last = self._stats_date(soup, STATS_LAST_SELECTOR, now)
        if first is None or last is None:
            return extraction
        if first > last:
            first, last = last, first

        sender = extraction.known_users[0] if extraction.known_users else ""
        extraction.messages = [
            AssembledMessage(sender=sender, timestamp=first, content="Chat begins", metadata={"placeholder": True}),
            AssembledMessage(sender=sender, timestamp=last, content="Chat ends", metadata={"placeholder": True}),
        ]
        return extraction

    def _stats_date(self, soup: BeautifulSoup, selector: str, now: datetime | None) -> datetime | None:
        match = STATS_DATE_RE.search(_text(soup.select_one(selector)))
        if match is None:
            return None
        fields = {key: int(value) for key, value in match.groupdict().items()}
        try:
            ts = datetime(tzinfo=self.matcher.tz, **fields)
        except ValueError:
            return None
        return ts if self.matcher.window.contains(ts, now) else None
