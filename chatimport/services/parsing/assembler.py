import logging
from collections.abc import Iterable, Iterator
from datetime import datetime

from chatimport.services.parsing.grammar import GrammarMatcher
from chatimport.services.parsing.types import AssembledMessage, Continuation, ImportDiagnostics, NewMessage, Noise

logger = logging.getLogger(__name__)


class MessageAssembler:
    """Folds transcript lines into whole messages.

    A matched line opens a message and flushes the one being accumulated;
    unmatched lines extend the open message and are dropped while idle.
    """

    def __init__(self, matcher: GrammarMatcher, progress_log_interval: int = 5000) -> None:
        self.matcher = matcher
        self.progress_log_interval = progress_log_interval

    def assemble(
        self,
        lines: Iterable[str],
        diagnostics: ImportDiagnostics | None = None,
        now: datetime | None = None,
    ) -> Iterator[AssembledMessage]:
        diagnostics = diagnostics if diagnostics is not None else ImportDiagnostics()
        sender: str | None = None
        timestamp: datetime | None = None
        buffer: list[str] = []

        for line in lines:
            diagnostics.lines_processed += 1
            if diagnostics.lines_processed % self.progress_log_interval == 0:
                logger.debug("assembler_progress", extra={"lines": diagnostics.lines_processed})

            parsed = self.matcher.classify(line, now)
            match parsed:
                case NewMessage():
                    diagnostics.record_hit(parsed.grammar)
                    if sender is not None and timestamp is not None:
                        yield AssembledMessage(sender=sender, timestamp=timestamp, content="\n".join(buffer))
                    sender, timestamp, buffer = parsed.sender, parsed.timestamp, [parsed.content]
                case Continuation():
                    if parsed.rejection:
                        diagnostics.record_rejection(parsed.rejection)
                    if sender is not None:
                        buffer.append(parsed.text)
                case Noise():
                    if parsed.rejection:
                        diagnostics.record_rejection(parsed.rejection)

        if sender is not None and timestamp is not None:
            yield AssembledMessage(sender=sender, timestamp=timestamp, content="\n".join(buffer))
