"""
Ingestion Error Types

Exceptions raised by the SMS ingestion core. Extraction and classification
never raise; only store access and cancellation surface as exceptions.
"""


class IngestionError(Exception):
    """Base class for ingestion errors."""


class StoreAccessError(IngestionError):
    """Raised when the transaction store lookup or insert fails."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        message = f"Store {operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class IngestionCancelled(IngestionError):
    """Raised at a message boundary when the caller cancels a batch operation."""

    def __init__(self, processed: int = 0):
        self.processed = processed
        super().__init__(f"Ingestion cancelled after {processed} message(s)")


def check_cancelled(cancel_event, processed: int = 0) -> None:
    """Raise IngestionCancelled if the cancel event has been set.

    Args:
        cancel_event: threading.Event or None
        processed: Number of items handled so far
    """
    if cancel_event is not None and cancel_event.is_set():
        raise IngestionCancelled(processed)
