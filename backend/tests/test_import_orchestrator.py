"""Tests for the bulk import orchestrator.

Runs the full build → validate → persist loop against an in-memory gateway
and checks the row accounting, abort policy and report contract.
"""
import logging

import pytest

from app.imports.errors import EmptyPayload, InvalidKind, PayloadTooLarge, PersistenceError
from app.imports.gateway import ImportContext
from app.imports.orchestrator import (
    ERROR_REPORT_LIMIT,
    ImportOrchestrator,
    RowOutcome,
    RowStatus,
    build_report,
)
from app.schemas.imports import ImportRequest


# ─── Helpers ──────────────────────────────────────────────────────────────────

class FakeGateway:
    """Records every insert; refuses asset tags / emails listed in ``reject``."""

    def __init__(self, reject: set[str] | None = None):
        self.reject = reject or set()
        self.assets = []
        self.users = []
        self.assignments = []
        self.contexts = []

    async def insert_asset(self, record, context):
        if record.asset_tag in self.reject:
            raise PersistenceError(f"Asset tag {record.asset_tag} already exists")
        self.assets.append(record)
        self.contexts.append(context)

    async def insert_user(self, record, context):
        if record.email in self.reject:
            raise PersistenceError(f"Email {record.email} already exists")
        self.users.append(record)
        self.contexts.append(context)

    async def insert_assignment(self, record, context):
        self.assignments.append(record)
        self.contexts.append(context)


VALID_1 = "LT-001,ThinkPad X1,laptop"
INVALID = "LT-002,Broken laptop,laptop,,,,,,,,exploded"
VALID_3 = "LT-003,Dell Monitor,monitor"


def _request(payload: str, kind: str = "assets", has_headers: bool = False, skip_errors: bool = False) -> ImportRequest:
    return ImportRequest(kind=kind, has_headers=has_headers, skip_errors=skip_errors, payload=payload)


# ─── Request-level rejection ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_unknown_kind_is_rejected():
    gateway = FakeGateway()
    with pytest.raises(InvalidKind):
        await ImportOrchestrator(gateway).run(_request(VALID_1, kind="vendors"))
    assert gateway.assets == []


@pytest.mark.asyncio
@pytest.mark.parametrize("payload,has_headers", [
    ("", False),
    ("\n\n   \n", False),
    ("\n  \n", True),
    ("asset_tag,name\n\n", True),
])
async def test_blank_payload_is_rejected(payload, has_headers):
    """Blank-only payloads (with or without a header) never produce a zero-row report."""
    with pytest.raises(EmptyPayload):
        await ImportOrchestrator(FakeGateway()).run(_request(payload, has_headers=has_headers))


@pytest.mark.asyncio
async def test_oversized_payload_is_rejected():
    orchestrator = ImportOrchestrator(FakeGateway(), max_payload_bytes=10)
    with pytest.raises(PayloadTooLarge):
        await orchestrator.run(_request(VALID_1))


# ─── Abort vs skip ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_abort_on_first_failure():
    """[valid, invalid, valid] without skip_errors: third row is never processed."""
    gateway = FakeGateway()
    report = await ImportOrchestrator(gateway).run(_request("\n".join([VALID_1, INVALID, VALID_3])))

    assert report.total_rows == 3
    assert report.imported_rows == 1
    assert report.failed_rows == 1
    assert report.imported_rows + report.failed_rows == 2
    assert report.aborted is True
    assert report.success is False
    assert [a.asset_tag for a in gateway.assets] == ["LT-001"]
    assert report.errors[0].startswith("Row 2: status:")


@pytest.mark.asyncio
async def test_skip_and_continue():
    gateway = FakeGateway()
    report = await ImportOrchestrator(gateway).run(
        _request("\n".join([VALID_1, INVALID, VALID_3]), skip_errors=True)
    )

    assert report.total_rows == 3
    assert report.imported_rows == 2
    assert report.failed_rows == 1
    assert report.aborted is False
    assert report.success is True
    assert report.message == "Import completed. 2 records imported, 1 failed."
    assert [a.asset_tag for a in gateway.assets] == ["LT-001", "LT-003"]


@pytest.mark.asyncio
async def test_failure_on_last_row_leaves_nothing_unprocessed():
    report = await ImportOrchestrator(FakeGateway()).run(_request("\n".join([VALID_1, INVALID])))

    assert report.imported_rows + report.failed_rows == report.total_rows
    assert report.aborted is False
    assert report.success is False


@pytest.mark.asyncio
async def test_header_skipping_and_row_numbers():
    """Header + 3 data lines: totalRows is 3 and the first data line is Row 1."""
    payload = "asset_tag,name,category\n" + "\n".join([INVALID, VALID_1, VALID_3])
    report = await ImportOrchestrator(FakeGateway()).run(_request(payload, has_headers=True, skip_errors=True))

    assert report.total_rows == 3
    assert report.errors[0].startswith("Row 1: ")


@pytest.mark.asyncio
async def test_blank_lines_do_not_shift_row_numbers():
    payload = "\n".join([VALID_1, "", "   ", INVALID])
    report = await ImportOrchestrator(FakeGateway()).run(_request(payload, skip_errors=True))

    assert report.total_rows == 2
    assert len(report.errors) == 1
    assert report.errors[0].startswith("Row 2: ")


# ─── Reporting ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_error_list_is_capped_but_all_failures_counted():
    payload = "\n".join(f",Nameless asset {i}" for i in range(25))
    report = await ImportOrchestrator(FakeGateway()).run(_request(payload, skip_errors=True))

    assert report.failed_rows == 25
    assert len(report.errors) == ERROR_REPORT_LIMIT
    assert report.errors[0] == "Row 1: asset_tag: Field required"
    assert report.errors[-1] == "Row 10: asset_tag: Field required"
    assert report.success is False  # nothing imported


@pytest.mark.asyncio
async def test_persistence_failure_is_accounted_like_validation_failure(caplog):
    caplog.set_level(logging.WARNING, logger="app.imports.orchestrator")
    gateway = FakeGateway(reject={"LT-003"})
    payload = "\n".join([VALID_1, INVALID, VALID_3])
    report = await ImportOrchestrator(gateway).run(_request(payload, skip_errors=True))

    assert report.failed_rows == 2
    assert report.imported_rows == 1
    assert report.errors[1] == "Row 3: Asset tag LT-003 already exists"
    # the two failure kinds stay distinguishable in the logs
    assert "Row 2 failed at validate" in caplog.text
    assert "Row 3 failed at persist" in caplog.text


@pytest.mark.asyncio
async def test_defaults_reach_the_gateway():
    gateway = FakeGateway()
    await ImportOrchestrator(gateway).run(_request("LT-001,ThinkPad X1,,,,,,,,,,"))

    record = gateway.assets[0]
    assert record.category == "other"
    assert record.status == "available"
    assert record.condition == "good"


@pytest.mark.asyncio
async def test_reports_are_identical_across_runs():
    gateway = FakeGateway()
    orchestrator = ImportOrchestrator(gateway)
    request = _request("\n".join([VALID_1, INVALID, VALID_3]), skip_errors=True)

    first = await orchestrator.run(request)
    second = await orchestrator.run(request)

    assert first == second


@pytest.mark.asyncio
async def test_context_is_passed_through_to_gateway():
    gateway = FakeGateway()
    context = ImportContext(actor_id="admin-1", actor_email="admin@acme.io")
    await ImportOrchestrator(gateway).run(_request(VALID_1), context)

    assert gateway.contexts == [context]


@pytest.mark.asyncio
async def test_users_and_assignments_dispatch():
    gateway = FakeGateway()
    orchestrator = ImportOrchestrator(gateway)

    users = await orchestrator.run(_request("Jane Doe,Jane@Acme.io,IT,,,,manager,true", kind="users"))
    assignments = await orchestrator.run(_request("42,user-7,Onboarding,2025-06-30,", kind="assignments"))

    assert users.imported_rows == 1
    assert gateway.users[0].email == "jane@acme.io"
    assert gateway.users[0].role == "manager"
    assert gateway.users[0].is_active is True
    assert assignments.imported_rows == 1
    assert gateway.assignments[0].asset_id == 42


@pytest.mark.asyncio
async def test_unexpected_gateway_errors_propagate():
    class BrokenGateway(FakeGateway):
        async def insert_asset(self, record, context):
            raise RuntimeError("connection reset")

    with pytest.raises(RuntimeError):
        await ImportOrchestrator(BrokenGateway()).run(_request(VALID_1, skip_errors=True))


@pytest.mark.parametrize("imported,failed,total,skip_errors,expected", [
    (3, 0, 3, False, True),
    (3, 0, 3, True, True),
    (2, 1, 3, True, True),
    (1, 1, 3, False, False),
    (0, 2, 2, True, False),
    (0, 1, 4, False, False),
])
def test_success_predicate(imported, failed, total, skip_errors, expected):
    outcomes = [RowOutcome(i + 1, RowStatus.imported) for i in range(imported)]
    outcomes += [RowOutcome(imported + i + 1, RowStatus.failed, f"Row {imported + i + 1}: bad") for i in range(failed)]

    report = build_report(total, outcomes, skip_errors)

    assert report.success is expected
    assert report.imported_rows == imported
    assert report.failed_rows == failed
    assert report.aborted is (imported + failed < total)
