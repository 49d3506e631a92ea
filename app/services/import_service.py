"""Bulk import — workbook rows become independent creates against the store.

Rows are submitted one at a time, each awaited before the next. A bad row
only bumps the error count; rows already written stay written. When at
least one row succeeds the catalog is reloaded from the store (or, with
IMPORT_INCREMENTAL_MERGE, only the new rows are merged in).
"""
import time
from typing import List, Optional

from app.config import settings
from app.core.exceptions import NotFoundError, ParseError, RemoteError, ValidationError
from app.core.logging import get_logger, new_batch_id, set_correlation_id
from app.schemas.catalog_schema import ImportSummary
from app.schemas.property_schema import PropertyRead
from app.services.catalog_service import CatalogSynchronizer
from app.services.mapper_service import row_to_draft
from app.services.notification_service import NotificationKind
from app.services.workbook_service import parse_workbook

logger = get_logger(__name__)

# Row 1 holds the headers
_FIRST_DATA_ROW = 2


class BulkImportReconciler:

    def __init__(self, catalog: CatalogSynchronizer, incremental_merge: Optional[bool] = None):
        self._catalog = catalog
        if incremental_merge is None:
            incremental_merge = settings.import_incremental_merge
        self._incremental_merge = incremental_merge

    async def import_workbook(self, data: bytes) -> ImportSummary:
        """Import every row of the workbook's first sheet.

        Raises ParseError, before submitting anything, when the workbook is
        unreadable, has no data rows, or exceeds IMPORT_MAX_ROWS.
        """
        batch_id = set_correlation_id(new_batch_id("import"))
        notifier = self._catalog.notifier

        try:
            rows = parse_workbook(data)
        except ParseError as e:
            notifier.notify(NotificationKind.ERROR, e.message)
            raise
        if not rows:
            notifier.notify(NotificationKind.ERROR, "A planilha não contém imóveis")
            raise ParseError("A planilha não contém imóveis")
        if len(rows) > settings.import_max_rows:
            message = f"A planilha excede o limite de {settings.import_max_rows} linhas"
            notifier.notify(NotificationKind.ERROR, message)
            raise ParseError(message, detail={"rows": len(rows)})

        logger.info("Import batch %s started: %d rows", batch_id, len(rows))
        started = time.monotonic()

        summary = ImportSummary()
        created: List[PropertyRead] = []
        store = self._catalog.store

        for row_number, row in enumerate(rows, start=_FIRST_DATA_ROW):
            try:
                draft = row_to_draft(row)
                record = await store.insert(draft.model_dump())
            except ValidationError as e:
                summary.error_count += 1
                logger.warning("Row %d rejected: %s", row_number, e.detail or e.message, extra={"row": row_number})
                continue
            except RemoteError as e:
                summary.error_count += 1
                logger.warning("Row %d not saved: %s", row_number, e.message, extra={"row": row_number})
                continue

            summary.success_count += 1
            created.append(record)

        if summary.success_count > 0:
            await self._reconcile(created)

        logger.info(
            "Import batch %s finished",
            batch_id,
            extra={
                "success_count": summary.success_count,
                "error_count": summary.error_count,
                "duration": round(time.monotonic() - started, 3),
            },
        )

        if summary.success_count > 0:
            notifier.notify(
                NotificationKind.SUCCESS,
                f"{summary.success_count} imóveis importados com sucesso",
            )
        if summary.error_count > 0:
            notifier.notify(
                NotificationKind.ERROR,
                f"{summary.error_count} linhas não puderam ser importadas",
            )
        return summary

    async def _reconcile(self, created: List[PropertyRead]) -> None:
        if self._incremental_merge:
            self._catalog.merge(created)
            return
        try:
            await self._catalog.load()
        except (RemoteError, NotFoundError) as e:
            # rows are saved; only the local mirror is stale until the next reload
            logger.error("Catalog reload after import failed: %s", e)
            self._catalog.merge(created)
            self._catalog.notifier.notify(
                NotificationKind.ERROR,
                "Imóveis importados, mas não foi possível recarregar o catálogo",
            )
