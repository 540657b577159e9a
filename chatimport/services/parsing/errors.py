class ChatImportError(Exception):
    """Base class for failures that stop an import entirely."""


class ChatSourceError(ChatImportError):
    """The transcript could not be read; the cause is chained as ``__cause__``."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Unable to read chat export {path!r}: {reason}")
        self.path = path
