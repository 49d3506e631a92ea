"""Catalog synchronizer — owns the in-memory catalog and applies single-property writes.

Write disciplines:
  - create / update / delete: confirm-then-apply. Local state changes only
    after the store confirms the write.
  - toggle_visibility / toggle_featured / change_status: optimistic. The new
    value is applied locally first and rolled back if the store rejects it.

Writes to the same property are serialized with a per-property asyncio.Lock,
so an optimistic write never builds on another write that is still in flight.
Every write also carries the record's version as expected_version, so two
admin sessions changing the same property cannot silently overwrite each other.

The catalog is kept newest first, the order the store returns it in.
"""
import asyncio
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from uuid import UUID

from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.core.exceptions import NotFoundError, RemoteError, ValidationError
from app.core.logging import get_logger
from app.models.enums import PropertyStatus
from app.schemas.property_schema import PropertyDraft, PropertyRead, PropertyUpdate
from app.services.notification_service import LoggingNotifier, NotificationKind, NotificationSink
from app.store.base import CatalogStore

logger = get_logger(__name__)

_STATUS_LABELS = {
    PropertyStatus.ACTIVE: "Ativo",
    PropertyStatus.PENDING: "Pendente",
    PropertyStatus.ARCHIVED: "Arquivado",
}

# (changes, success message) computed from the current record
FlagChange = Callable[[PropertyRead], Tuple[Dict[str, Any], str]]


def validation_messages(exc: PydanticValidationError) -> List[str]:
    """Flatten pydantic errors into 'field: message' strings."""
    return [
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]


def validate_model(model: type[BaseModel], data: Union[BaseModel, Mapping[str, Any]]):
    """Validate `data` as `model`, raising the application ValidationError."""
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Dados do imóvel inválidos", detail=validation_messages(e)) from e


class CatalogSynchronizer:
    """Single owner of the catalog's local state.

    Consumers read through all()/get(); they never get a mutable handle.
    """

    def __init__(self, store: CatalogStore, notifier: Optional[NotificationSink] = None):
        self._store = store
        self._notifier = notifier or LoggingNotifier()
        self._records: Dict[UUID, PropertyRead] = {}
        self._locks: Dict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def store(self) -> CatalogStore:
        return self._store

    @property
    def notifier(self) -> NotificationSink:
        return self._notifier

    # ------------------------------------------------------------------
    # Local state
    # ------------------------------------------------------------------

    def all(self) -> List[PropertyRead]:
        return list(self._records.values())

    def get(self, property_id: UUID) -> PropertyRead:
        record = self._records.get(property_id)
        if record is None:
            raise NotFoundError(f"Property {property_id} not found")
        return record

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, property_id: object) -> bool:
        return property_id in self._records

    def replace(self, records: Iterable[PropertyRead]) -> None:
        """Replace all local state; `records` must already be newest first."""
        self._records = {record.id: record for record in records}

    def merge(self, records: Iterable[PropertyRead]) -> None:
        """Upsert records given oldest first. Known ids keep their position; new ones go in front."""
        added: List[PropertyRead] = []
        for record in records:
            if record.id in self._records:
                self._records[record.id] = record
            else:
                added.append(record)
        if added:
            newest_first = {record.id: record for record in reversed(added)}
            newest_first.update(self._records)
            self._records = newest_first

    async def load(self) -> List[PropertyRead]:
        """Full reload from the store; replaces all local state."""
        records = await self._store.select()
        self.replace(records)
        logger.info("Catalog loaded: %d properties", len(records))
        return records

    # ------------------------------------------------------------------
    # Confirm-then-apply writes
    # ------------------------------------------------------------------

    async def create(self, draft: Union[PropertyDraft, Mapping[str, Any]]) -> PropertyRead:
        try:
            draft = validate_model(PropertyDraft, draft)
        except ValidationError as e:
            self._notify_error("Não foi possível adicionar o imóvel", e)
            raise
        return await self._insert(draft, "Imóvel adicionado com sucesso!")

    async def submit_for_review(self, draft: Union[PropertyDraft, Mapping[str, Any]]) -> PropertyRead:
        """Public submission: always stored as pending and not featured, whatever was sent."""
        try:
            draft = validate_model(PropertyDraft, draft)
        except ValidationError as e:
            self._notify_error("Não foi possível enviar o imóvel", e)
            raise
        draft = draft.model_copy(update={"status": PropertyStatus.PENDING, "featured": False})
        return await self._insert(draft, "Imóvel enviado para análise")

    async def _insert(self, draft: PropertyDraft, success_message: str) -> PropertyRead:
        try:
            record = await self._store.insert(draft.model_dump())
        except RemoteError as e:
            self._notify_error("Não foi possível adicionar o imóvel", e)
            raise

        self.merge([record])
        logger.info(
            "Property created",
            extra={"property_id": str(record.id), "status": record.status.value},
        )
        self._notifier.notify(NotificationKind.SUCCESS, success_message)
        return record

    async def update(
        self,
        property_id: UUID,
        patch: Union[PropertyUpdate, Mapping[str, Any]],
    ) -> PropertyRead:
        async with self._locks[property_id]:
            current = self.get(property_id)
            try:
                patch = validate_model(PropertyUpdate, patch)
                values = patch.model_dump()
                await self._store.update(property_id, values, expected_version=current.version)
            except (ValidationError, RemoteError, NotFoundError) as e:
                self._notify_error("Não foi possível atualizar o imóvel", e)
                raise

            record = PropertyRead.model_validate(
                {**current.model_dump(), **values, "version": current.version + 1}
            )
            self._records[property_id] = record

        logger.info("Property updated", extra={"property_id": str(property_id)})
        self._notifier.notify(NotificationKind.SUCCESS, "Imóvel atualizado com sucesso!")
        return record

    async def delete(self, property_id: UUID) -> None:
        async with self._locks[property_id]:
            self.get(property_id)
            try:
                await self._store.delete(property_id)
            except NotFoundError:
                # already gone remotely; converge local state
                self._records.pop(property_id, None)
                self._locks.pop(property_id, None)
                raise
            except RemoteError as e:
                self._notify_error("Não foi possível remover o imóvel", e)
                raise

            self._records.pop(property_id, None)
            self._locks.pop(property_id, None)

        logger.info("Property deleted", extra={"property_id": str(property_id)})
        self._notifier.notify(NotificationKind.SUCCESS, "Imóvel removido com sucesso!")

    # ------------------------------------------------------------------
    # Optimistic flag writes
    # ------------------------------------------------------------------

    async def toggle_visibility(self, property_id: UUID) -> PropertyRead:
        def flip(current: PropertyRead):
            is_public = not current.is_public
            message = "Imóvel agora é público" if is_public else "Imóvel agora é privado"
            return {"is_public": is_public}, message

        return await self._apply_optimistic(property_id, flip)

    async def toggle_featured(self, property_id: UUID) -> PropertyRead:
        def flip(current: PropertyRead):
            featured = not current.featured
            return {"featured": featured}, "Imóvel destacado" if featured else "Destaque removido"

        return await self._apply_optimistic(property_id, flip)

    async def change_status(self, property_id: UUID, new_status: Union[PropertyStatus, str]) -> PropertyRead:
        try:
            new_status = PropertyStatus(new_status)
        except ValueError as e:
            raise ValidationError(f"Status inválido: '{new_status}'") from e
        message = f"Status alterado para {_STATUS_LABELS[new_status]}"
        return await self._apply_optimistic(property_id, lambda current: ({"status": new_status}, message))

    async def _apply_optimistic(self, property_id: UUID, change: FlagChange) -> PropertyRead:
        async with self._locks[property_id]:
            current = self.get(property_id)
            changes, success_message = change(current)
            optimistic = current.model_copy(update={**changes, "version": current.version + 1})
            self._records[property_id] = optimistic

            try:
                await self._store.update(property_id, changes, expected_version=current.version)
            except (RemoteError, NotFoundError) as e:
                # a reload during the write already replaced the record
                if self._records.get(property_id) is optimistic:
                    self._records[property_id] = current
                self._notify_error("Não foi possível atualizar o imóvel", e)
                raise

        logger.info(
            "Property flags updated",
            extra={"property_id": str(property_id), "status": str(optimistic.status.value)},
        )
        self._notifier.notify(NotificationKind.SUCCESS, success_message)
        return optimistic

    def _notify_error(self, message: str, exc: Exception) -> None:
        logger.warning("%s: %s", message, exc)
        self._notifier.notify(NotificationKind.ERROR, f"{message}: {exc}")
