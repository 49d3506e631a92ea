"""SQLAlchemy-backed catalog store.

Each call opens its own session from the factory and commits before
returning, so a failed write never leaves a half-applied transaction behind.
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import ConflictError, NotFoundError, RemoteError
from app.core.logging import get_logger
from app.models.property_model import Property
from app.schemas.property_schema import PropertyRead

logger = get_logger(__name__)

_IMMUTABLE = frozenset({"id", "version", "created_at", "updated_at"})


class SqlCatalogStore:
    """CatalogStore over an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def select(self, **equals: Any) -> List[PropertyRead]:
        query = select(Property).order_by(Property.created_at.desc())
        if equals:
            query = query.filter_by(**equals)
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(query)).scalars().all()
        except SQLAlchemyError as e:
            logger.error("Catalog select failed: %s", str(e))
            raise RemoteError("Não foi possível carregar os imóveis", detail=str(e)) from e
        return [PropertyRead.model_validate(row) for row in rows]

    async def insert(self, values: Dict[str, Any]) -> PropertyRead:
        data = {k: v for k, v in values.items() if k not in _IMMUTABLE}
        try:
            async with self._session_factory() as session:
                row = Property(**data)
                session.add(row)
                await session.commit()
                await session.refresh(row)
                record = PropertyRead.model_validate(row)
        except SQLAlchemyError as e:
            logger.error("Catalog insert failed: %s", str(e))
            raise RemoteError("Não foi possível salvar o imóvel", detail=str(e)) from e
        logger.debug("Inserted property", extra={"property_id": str(record.id)})
        return record

    async def update(
        self,
        property_id: UUID,
        values: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        data = {k: v for k, v in values.items() if k not in _IMMUTABLE}
        stmt = (
            update(Property)
            .where(Property.id == property_id)
            .values(**data, version=Property.version + 1)
        )
        if expected_version is not None:
            stmt = stmt.where(Property.version == expected_version)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    exists = (await session.execute(
                        select(Property.version).where(Property.id == property_id)
                    )).scalar_one_or_none()
                    await session.rollback()
                    if exists is None:
                        raise NotFoundError(f"Property {property_id} not found")
                    raise ConflictError(
                        f"Property {property_id} was changed by someone else",
                        detail={"expected_version": expected_version, "current_version": exists},
                    )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Catalog update failed: %s", str(e), extra={"property_id": str(property_id)})
            raise RemoteError("Não foi possível atualizar o imóvel", detail=str(e)) from e

    async def delete(self, property_id: UUID) -> None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(delete(Property).where(Property.id == property_id))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Catalog delete failed: %s", str(e), extra={"property_id": str(property_id)})
            raise RemoteError("Não foi possível remover o imóvel", detail=str(e)) from e
        if result.rowcount == 0:
            raise NotFoundError(f"Property {property_id} not found")
