"""Remote store contract consumed by the catalog synchronizer and the importer."""
from typing import Any, Dict, List, Optional, Protocol
from uuid import UUID

from app.schemas.property_schema import PropertyRead


class CatalogStore(Protocol):
    """Relational store for properties. Assigns ids on insert.

    Implementations raise RemoteError when the backend call fails,
    ConflictError when expected_version does not match, and NotFoundError
    when the id is unknown.
    """

    async def select(self, **equals: Any) -> List[PropertyRead]:
        """Matching records, newest first."""
        ...

    async def insert(self, values: Dict[str, Any]) -> PropertyRead:
        ...

    async def update(
        self,
        property_id: UUID,
        values: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        ...

    async def delete(self, property_id: UUID) -> None:
        ...
