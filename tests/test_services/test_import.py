"""Tests for bulk workbook import — per-row outcomes and catalog reconciliation."""
import io
import logging
import zipfile

import pytest

from app.config import settings
from app.core.exceptions import ParseError
from app.core.logging import correlation_id_var, set_correlation_id
from app.models.enums import ListingKind
from app.services.catalog_service import CatalogSynchronizer
from app.services.import_service import BulkImportReconciler
from app.services.notification_service import NotificationKind
from tests.conftest import make_import_row, make_property_payload, make_workbook


@pytest.mark.asyncio
async def test_import_all_rows(catalog, notifier):
    """Three valid rows: three creates, catalog reloaded."""
    rows = [
        make_import_row(**{"Título": "Casa A", "Tipo": "Venda"}),
        make_import_row(**{"Título": "Apartamento B", "Tipo": "Aluguel", "Preço": "R$ 3.200/mês"}),
        make_import_row(**{"Título": "Loft C", "Tipo": "venda"}),
    ]

    summary = await BulkImportReconciler(catalog).import_workbook(make_workbook(rows))

    assert (summary.success_count, summary.error_count) == (3, 0)
    kinds = {record.title: record.listing_kind for record in catalog.all()}
    assert kinds == {
        "Casa A": ListingKind.SALE,
        "Apartamento B": ListingKind.RENT,
        "Loft C": ListingKind.SALE,
    }
    assert notifier.of_kind(NotificationKind.SUCCESS) == ["3 imóveis importados com sucesso"]
    assert notifier.of_kind(NotificationKind.ERROR) == []


@pytest.mark.asyncio
async def test_invalid_row_counts_as_error(catalog, store, notifier):
    """A row missing its price is skipped; the others are still created."""
    rows = [
        make_import_row(**{"Título": "Casa A"}),
        make_import_row(**{"Título": "Sem preço", "Preço": None}),
        make_import_row(**{"Título": "Casa C"}),
    ]

    summary = await BulkImportReconciler(catalog).import_workbook(make_workbook(rows))

    assert (summary.success_count, summary.error_count) == (2, 1)
    assert store.insert_calls == 2
    assert sorted(r.title for r in catalog.all()) == ["Casa A", "Casa C"]
    assert notifier.of_kind(NotificationKind.ERROR) == ["1 linhas não puderam ser importadas"]


@pytest.mark.asyncio
async def test_remote_row_failure_counts_as_error(catalog, store):
    rows = [make_import_row(**{"Título": title}) for title in ("A", "B", "C")]
    store.failing_titles.add("B")

    summary = await BulkImportReconciler(catalog).import_workbook(make_workbook(rows))

    assert (summary.success_count, summary.error_count) == (2, 1)
    assert store.insert_calls == 3
    assert sorted(r.title for r in catalog.all()) == ["A", "C"]


@pytest.mark.asyncio
async def test_all_rows_invalid_skips_reload(catalog, store, notifier):
    existing = await catalog.create(make_property_payload())
    other = CatalogSynchronizer(store)
    await other.create(make_property_payload(title="Criado em outra sessão"))
    rows = [make_import_row(**{"Preço": None}), make_import_row(**{"Área (m²)": 0})]

    summary = await BulkImportReconciler(catalog).import_workbook(make_workbook(rows))

    assert (summary.success_count, summary.error_count) == (0, 2)
    # no reload happened, so the other session's record is still unseen
    assert [r.id for r in catalog.all()] == [existing.id]
    assert notifier.of_kind(NotificationKind.SUCCESS) == ["Imóvel adicionado com sucesso!"]


@pytest.mark.asyncio
async def test_full_reload_picks_up_remote_changes(catalog, store):
    other = CatalogSynchronizer(store)
    remote = await other.create(make_property_payload(title="Criado em outra sessão"))

    await BulkImportReconciler(catalog, incremental_merge=False).import_workbook(
        make_workbook([make_import_row()])
    )

    assert remote.id in catalog
    assert len(catalog) == 2


@pytest.mark.asyncio
async def test_incremental_merge_only_adds_new_rows(catalog, store):
    other = CatalogSynchronizer(store)
    remote = await other.create(make_property_payload(title="Criado em outra sessão"))

    summary = await BulkImportReconciler(catalog, incremental_merge=True).import_workbook(
        make_workbook([make_import_row(), make_import_row(**{"Título": "Outra casa"})])
    )

    assert summary.success_count == 2
    assert remote.id not in catalog
    assert sorted(r.title for r in catalog.all()) == ["Casa em Vila Madalena", "Outra casa"]


@pytest.mark.asyncio
async def test_failed_reload_still_merges_created_rows(catalog, store, notifier):
    """Rows are already saved; a failed reload must not drop them locally."""
    store.failing.add("select")

    summary = await BulkImportReconciler(catalog, incremental_merge=False).import_workbook(
        make_workbook([make_import_row()])
    )

    assert summary.success_count == 1
    assert len(catalog) == 1
    assert "Imóveis importados, mas não foi possível recarregar o catálogo" in notifier.of_kind(
        NotificationKind.ERROR
    )


@pytest.mark.asyncio
async def test_unreadable_file_is_parse_error(catalog, store, notifier):
    with pytest.raises(ParseError):
        await BulkImportReconciler(catalog).import_workbook(b"definitely not a workbook")

    assert store.insert_calls == 0
    assert notifier.of_kind(NotificationKind.ERROR) == ["Não foi possível ler a planilha"]


@pytest.mark.asyncio
async def test_header_only_sheet_is_parse_error(catalog, store):
    data = make_workbook([], headers=["Título", "Preço"])

    with pytest.raises(ParseError):
        await BulkImportReconciler(catalog).import_workbook(data)

    assert store.insert_calls == 0


@pytest.mark.asyncio
async def test_blank_rows_are_skipped(catalog):
    headers = list(make_import_row().keys())
    rows = [make_import_row(), {}, make_import_row(**{"Título": "Outra casa"})]

    summary = await BulkImportReconciler(catalog).import_workbook(make_workbook(rows, headers))

    assert (summary.success_count, summary.error_count) == (2, 0)


@pytest.mark.asyncio
async def test_row_limit(catalog, store, monkeypatch):
    monkeypatch.setattr(settings, "import_max_rows", 2)
    rows = [make_import_row(**{"Título": f"Casa {i}"}) for i in range(3)]

    with pytest.raises(ParseError):
        await BulkImportReconciler(catalog).import_workbook(make_workbook(rows))

    assert store.insert_calls == 0


def _with_broken_sheet(data: bytes) -> bytes:
    """Same workbook, but the first sheet's XML is cut off mid-row."""
    source = zipfile.ZipFile(io.BytesIO(data))
    output = io.BytesIO()
    with zipfile.ZipFile(output, "w") as target:
        for item in source.infolist():
            content = source.read(item.filename)
            if item.filename == "xl/worksheets/sheet1.xml":
                content = content[: len(content) // 2]
            target.writestr(item, content)
    return output.getvalue()


@pytest.mark.asyncio
async def test_corrupt_sheet_is_parse_error(catalog, store):
    data = _with_broken_sheet(make_workbook([make_import_row() for _ in range(20)]))

    with pytest.raises(ParseError):
        await BulkImportReconciler(catalog).import_workbook(data)

    assert store.insert_calls == 0


@pytest.mark.asyncio
async def test_import_logs_under_request_correlation_id(catalog, caplog):
    set_correlation_id("trace-123")

    with caplog.at_level(logging.INFO, logger="app.services.import_service"):
        await BulkImportReconciler(catalog).import_workbook(make_workbook([make_import_row()]))

    assert correlation_id_var.get().startswith("trace-123/import-")
    assert any("trace-123/import-" in record.getMessage() for record in caplog.records)
