"""Exceptions raised by the bulk import pipeline.

Request-level errors stop a run before any row is touched and reach the
caller. Row-level errors are caught by the orchestrator and turned into a
failed row outcome.
"""


# ─── Request level ───

class ImportRequestError(Exception):
    """The import request itself is unusable."""


class InvalidKind(ImportRequestError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Invalid import type '{kind}'")


class EmptyPayload(ImportRequestError):
    def __init__(self):
        super().__init__("No data rows found in file")


class PayloadTooLarge(ImportRequestError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"File is {size} bytes; the limit is {limit} bytes")


# ─── Row level ───

class RowError(Exception):
    """A single row could not be imported."""


class RecordValidationError(RowError):
    """The row's candidate record broke a field or vocabulary rule."""


class PersistenceError(RowError):
    """The data store refused a record that passed validation."""
