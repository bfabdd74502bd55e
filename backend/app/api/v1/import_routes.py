"""Bulk import endpoints for assets, users and assignments."""
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import require_role
from app.core.limiter import limiter
from app.db.session import get_session
from app.imports.builders import header_line
from app.imports.errors import ImportRequestError
from app.imports.gateway import ImportContext, PersistenceGateway, SqlAlchemyGateway
from app.imports.kinds import ImportKind
from app.imports.orchestrator import ImportOrchestrator
from app.models.user import User
from app.schemas.imports import ImportReport, ImportRequest
from app.services import audit as audit_svc

logger = logging.getLogger(__name__)

router = APIRouter()

IMPORT_ROLES = ("admin", "super_admin")


def get_gateway(db: Annotated[AsyncSession, Depends(get_session)]) -> PersistenceGateway:
    return SqlAlchemyGateway(db)


# ─── POST /import ───

@router.post("", response_model=ImportReport, summary="Bulk import assets, users or assignments (admin, super_admin)")
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_records(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[User, Depends(require_role(*IMPORT_ROLES))],
    gateway: Annotated[PersistenceGateway, Depends(get_gateway)],
    import_type: Annotated[str, Form(alias="importType")],
    has_headers: Annotated[bool, Form(alias="hasHeaders")] = False,
    skip_errors: Annotated[bool, Form(alias="skipErrors")] = False,
    notes: Annotated[str | None, Form()] = None,
    file: Annotated[UploadFile | None, File()] = None,
):
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    content = await file.read()
    import_request = ImportRequest(
        kind=import_type,
        has_headers=has_headers,
        skip_errors=skip_errors,
        payload=content.decode("utf-8-sig", errors="replace"),
        notes=notes,
    )
    context = ImportContext(actor_id=str(current_user.id), actor_email=current_user.email)

    orchestrator = ImportOrchestrator(
        gateway,
        delimiter=settings.IMPORT_DELIMITER,
        max_payload_bytes=settings.IMPORT_MAX_PAYLOAD_BYTES,
    )
    try:
        report = await orchestrator.run(import_request, context)
    except ImportRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    try:
        async with db.begin_nested():
            await audit_svc.log_async(
                db,
                action="bulk_import.completed",
                entity_type="bulk_import",
                entity_id=uuid.uuid4().hex,
                actor_id=context.actor_id,
                actor_email=context.actor_email,
                after={
                    "kind": import_request.kind,
                    "file_name": file.filename,
                    "total_rows": report.total_rows,
                    "imported_rows": report.imported_rows,
                    "failed_rows": report.failed_rows,
                    "aborted": report.aborted,
                },
                notes=import_request.notes,
            )
    except SQLAlchemyError as exc:
        logger.warning("Audit entry for bulk import failed (import kept): %s", exc)

    # Rows written before an abort are kept.
    await db.commit()
    return report


# ─── GET /import/templates/{kind} ───

@router.get("/templates/{kind}", summary="Download the column header line for an import kind")
async def download_template(
    kind: ImportKind,
    current_user: Annotated[User, Depends(require_role(*IMPORT_ROLES))],
):
    return PlainTextResponse(
        header_line(kind, settings.IMPORT_DELIMITER) + "\n",
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{kind.value}_template.csv"'},
    )
