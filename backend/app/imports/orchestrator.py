"""Bulk import orchestrator.

Drives rows one at a time through build → validate → persist, applies the
skip/abort policy and turns the collected row outcomes into an ImportReport.

Rows are strictly sequential: each gateway write is awaited before the next
row is built, and the abort decision for row i is made once its outcome is
known. Later rows may depend on earlier ones (an assignment row referring to
a user imported a few lines up), so nothing is reordered or run in parallel.
"""
import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from app.imports.builders import Candidate, build_asset, build_assignment, build_user
from app.imports.errors import (
    EmptyPayload,
    InvalidKind,
    PayloadTooLarge,
    PersistenceError,
    RecordValidationError,
    RowError,
)
from app.imports.field_mapper import DEFAULT_DELIMITER, RawRow, split_rows
from app.imports.gateway import ImportContext, PersistenceGateway
from app.imports.kinds import ImportKind
from app.imports.validation import ValidatedRecord, validate
from app.schemas.imports import ImportReport, ImportRequest

logger = logging.getLogger(__name__)

# Reporting cap only: every failure is still counted in failed_rows.
ERROR_REPORT_LIMIT = 10


class RowStatus(str, enum.Enum):
    imported = "imported"
    failed = "failed"


class RowStage(str, enum.Enum):
    validate = "validate"
    persist = "persist"


@dataclass(frozen=True)
class RowOutcome:
    row_index: int
    status: RowStatus
    message: str | None = None
    stage: RowStage | None = None


# ─── Per-kind wiring ───

@dataclass(frozen=True)
class KindPipeline:
    build: Callable[[RawRow], Candidate]
    persist: Callable[[PersistenceGateway, ValidatedRecord, ImportContext | None], Awaitable[None]]


KIND_PIPELINES: dict[ImportKind, KindPipeline] = {
    ImportKind.assets: KindPipeline(
        build=build_asset,
        persist=lambda gateway, record, context: gateway.insert_asset(record, context),
    ),
    ImportKind.users: KindPipeline(
        build=build_user,
        persist=lambda gateway, record, context: gateway.insert_user(record, context),
    ),
    ImportKind.assignments: KindPipeline(
        build=build_assignment,
        persist=lambda gateway, record, context: gateway.insert_assignment(record, context),
    ),
}


# ─── Reporting ───

def build_report(total_rows: int, outcomes: list[RowOutcome], skip_errors: bool) -> ImportReport:
    imported = sum(1 for o in outcomes if o.status is RowStatus.imported)
    errors = [o.message for o in outcomes if o.status is RowStatus.failed]
    failed = len(errors)
    return ImportReport(
        success=failed == 0 or (skip_errors and imported > 0),
        message=f"Import completed. {imported} records imported, {failed} failed.",
        total_rows=total_rows,
        imported_rows=imported,
        failed_rows=failed,
        errors=errors[:ERROR_REPORT_LIMIT],
        aborted=len(outcomes) < total_rows,
    )


# ─── Orchestrator ───

class ImportOrchestrator:
    def __init__(
        self,
        gateway: PersistenceGateway,
        delimiter: str = DEFAULT_DELIMITER,
        max_payload_bytes: int | None = None,
    ):
        self._gateway = gateway
        self._delimiter = delimiter
        self._max_payload_bytes = max_payload_bytes

    async def run(self, request: ImportRequest, context: ImportContext | None = None) -> ImportReport:
        """Import every data row of ``request`` and report the outcome.

        Raises:
            InvalidKind: ``request.kind`` is not assets, users or assignments.
            PayloadTooLarge: the payload exceeds ``max_payload_bytes``.
            EmptyPayload: no data rows remain after blank lines and the header are removed.
        """
        try:
            kind = ImportKind(request.kind)
        except ValueError:
            raise InvalidKind(request.kind) from None

        if self._max_payload_bytes is not None:
            size = len(request.payload.encode("utf-8"))
            if size > self._max_payload_bytes:
                raise PayloadTooLarge(size, self._max_payload_bytes)

        rows = split_rows(request.payload, request.has_headers, self._delimiter)
        if not rows:
            raise EmptyPayload()

        pipeline = KIND_PIPELINES[kind]
        logger.info(
            "Import started: kind=%s rows=%d skip_errors=%s",
            kind.value, len(rows), request.skip_errors,
        )

        outcomes: list[RowOutcome] = []
        for row in rows:
            outcome = await self._process_row(row, pipeline, context)
            outcomes.append(outcome)
            if outcome.status is RowStatus.failed and not request.skip_errors:
                logger.info("Import aborted at row %d; %d rows left unprocessed", row.index, len(rows) - row.index)
                break

        report = build_report(len(rows), outcomes, request.skip_errors)
        logger.info(
            "Import finished: kind=%s total=%d imported=%d failed=%d aborted=%s",
            kind.value, report.total_rows, report.imported_rows, report.failed_rows, report.aborted,
        )
        return report

    async def _process_row(
        self,
        row: RawRow,
        pipeline: KindPipeline,
        context: ImportContext | None,
    ) -> RowOutcome:
        candidate = pipeline.build(row)
        try:
            record = validate(candidate)
        except RecordValidationError as exc:
            return self._failed(row, RowStage.validate, exc)

        try:
            await pipeline.persist(self._gateway, record, context)
        except PersistenceError as exc:
            return self._failed(row, RowStage.persist, exc)

        return RowOutcome(row_index=row.index, status=RowStatus.imported)

    @staticmethod
    def _failed(row: RawRow, stage: RowStage, exc: RowError) -> RowOutcome:
        logger.warning("Row %d failed at %s: %s", row.index, stage.value, exc)
        return RowOutcome(
            row_index=row.index,
            status=RowStatus.failed,
            message=f"Row {row.index}: {exc}",
            stage=stage,
        )
