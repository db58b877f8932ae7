"""Errors raised by the listening facts pipeline."""


class ListeningFactsError(Exception):
    """Base class for pipeline errors."""


class ReadError(ListeningFactsError):
    """A single input file or archive entry could not be read as text."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Could not read '{filename}': {reason}")


class NoHistoryFoundError(ListeningFactsError):
    """No streaming history events survived normalization."""

    def __init__(self, message: str = "No streaming history found."):
        super().__init__(message)
