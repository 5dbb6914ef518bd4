"""Exceptions raised by the download pipeline."""


class BookSpreadsError(Exception):
    """Base class for book-spreads errors."""


class InputError(BookSpreadsError):
    """Invalid user input; aborts before any browser work."""


class AccessDeniedError(BookSpreadsError):
    """The export button is still missing after the login step."""


class SpreadFetchError(BookSpreadsError):
    """A single spread could not be fetched. The run continues."""


class TriggerError(SpreadFetchError):
    """Clicking the export button failed."""


class CaptureTimeoutError(SpreadFetchError):
    """No new page opened within the capture timeout."""


class RetrievalError(SpreadFetchError):
    """The captured PDF could not be read back from the browser."""


class NavigationError(BookSpreadsError):
    """The viewer tab could not be moved to a URL."""
