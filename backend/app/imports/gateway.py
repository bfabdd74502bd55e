"""Persistence gateway: one write per record kind.

The orchestrator only knows the PersistenceGateway protocol. SqlAlchemyGateway
is the production adapter; tests pass in-memory fakes.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.imports.errors import PersistenceError
from app.models.asset import Asset
from app.models.assignment import AssetAssignment
from app.models.user import User
from app.schemas.records import AssetCreate, AssignmentCreate, UserCreate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportContext:
    """Who is running the import. Carried through, never inspected by the pipeline."""
    actor_id: str | None = None
    actor_email: str | None = None


class PersistenceGateway(Protocol):
    async def insert_asset(self, record: AssetCreate, context: ImportContext | None) -> None: ...

    async def insert_user(self, record: UserCreate, context: ImportContext | None) -> None: ...

    async def insert_assignment(self, record: AssignmentCreate, context: ImportContext | None) -> None: ...


def _actor(context: ImportContext | None) -> str | None:
    return context.actor_id if context else None


class SqlAlchemyGateway:
    """Writes each record inside its own SAVEPOINT on the caller's session.

    Lookups run inside the savepoint too. A rejected row rolls back only its
    savepoint, so rows written earlier in the run survive. The caller owns the outer transaction and commits it.
    """

    def __init__(self, db: AsyncSession):
        self._db = db

    @asynccontextmanager
    async def _savepoint(self):
        try:
            async with self._db.begin_nested():
                yield
        except IntegrityError as exc:
            logger.debug("Savepoint rolled back: %s", exc)
            raise PersistenceError(f"Constraint violation: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            logger.debug("Savepoint rolled back: %s", exc)
            raise PersistenceError(f"Database error: {exc.__class__.__name__}") from exc

    async def insert_asset(self, record: AssetCreate, context: ImportContext | None) -> None:
        async with self._savepoint():
            result = await self._db.execute(select(Asset.id).where(Asset.asset_tag == record.asset_tag))
            if result.scalar_one_or_none() is not None:
                raise PersistenceError(f"Asset tag {record.asset_tag} already exists")

            self._db.add(Asset(**record.model_dump(), created_by=_actor(context)))

    async def insert_user(self, record: UserCreate, context: ImportContext | None) -> None:
        async with self._savepoint():
            result = await self._db.execute(select(User.id).where(func.lower(User.email) == record.email))
            if result.scalar_one_or_none() is not None:
                raise PersistenceError(f"Email {record.email} already exists")

            self._db.add(User(**record.model_dump()))

    async def insert_assignment(self, record: AssignmentCreate, context: ImportContext | None) -> None:
        async with self._savepoint():
            result = await self._db.execute(select(Asset).where(Asset.id == record.asset_id))
            asset = result.scalar_one_or_none()
            if asset is None:
                raise PersistenceError(f"Asset {record.asset_id} not found")

            result = await self._db.execute(select(User.id).where(User.id == record.user_id))
            if result.scalar_one_or_none() is None:
                raise PersistenceError(f"User {record.user_id} not found")

            if asset.status != "available":
                raise PersistenceError(f"Asset {asset.asset_tag} is not available")

            self._db.add(
                AssetAssignment(
                    **record.model_dump(),
                    assigned_by=_actor(context),
                    status="active",
                    is_active=True,
                )
            )
            asset.status = "assigned"
