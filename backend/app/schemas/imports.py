"""Pydantic schemas for bulk import requests and results."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ImportRequest(BaseModel):
    """A bulk import as accepted from the caller. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    kind: str
    has_headers: bool = False
    skip_errors: bool = False
    payload: str
    notes: str | None = None


class ImportReport(BaseModel):
    """Aggregate outcome of one import run (serialised with camelCase keys)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str
    total_rows: int
    imported_rows: int
    failed_rows: int
    errors: list[str] = []
    aborted: bool = False
