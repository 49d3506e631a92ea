"""Test fixtures — in-memory store, catalog, async test client, factories."""
import asyncio
import io
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from openpyxl import Workbook
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import verify_api_key
from app.core.exceptions import RemoteError
from app.database import Base
from app.main import app
from app.models import Property  # noqa: F401  (registers the table on Base.metadata)
from app.schemas.property_schema import PropertyRead
from app.services.catalog_service import CatalogSynchronizer
from app.services.notification_service import NotificationKind
from app.store.sql_store import SqlCatalogStore


TEST_DATABASE_URL = "sqlite+aiosqlite://"


class RecordingNotifier:
    """Notification sink that keeps every message for assertions."""

    def __init__(self):
        self.messages: List[Tuple[NotificationKind, str]] = []

    def notify(self, kind: NotificationKind, message: str) -> None:
        self.messages.append((kind, message))

    def of_kind(self, kind: NotificationKind) -> List[str]:
        return [message for k, message in self.messages if k == kind]


class FlakyStore(SqlCatalogStore):
    """SqlCatalogStore that fails on demand.

    `failing` holds operation names ("insert", "update", "delete", "select");
    `failing_titles` fails inserts only for those titles; `fail_next_updates`
    fails that many updates, then lets the rest through. `update_delay` holds
    every update that long before it reaches the database.
    """

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.failing: set = set()
        self.failing_titles: set = set()
        self.insert_calls = 0
        self.fail_next_updates = 0
        self.update_delay = 0.0

    async def select(self, **equals):
        if "select" in self.failing:
            raise RemoteError("select failed")
        return await super().select(**equals)

    async def insert(self, values):
        self.insert_calls += 1
        if "insert" in self.failing or values.get("title") in self.failing_titles:
            raise RemoteError("insert failed")
        return await super().insert(values)

    async def update(self, property_id, values, expected_version=None):
        if self.update_delay:
            await asyncio.sleep(self.update_delay)
        if self.fail_next_updates:
            self.fail_next_updates -= 1
            raise RemoteError("update failed")
        if "update" in self.failing:
            raise RemoteError("update failed")
        return await super().update(property_id, values, expected_version=expected_version)

    async def delete(self, property_id):
        if "delete" in self.failing:
            raise RemoteError("delete failed")
        return await super().delete(property_id)


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def store(session_factory) -> FlakyStore:
    return FlakyStore(session_factory)


@pytest_asyncio.fixture(scope="function")
async def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture(scope="function")
async def catalog(store, notifier) -> CatalogSynchronizer:
    return CatalogSynchronizer(store, notifier)


@pytest_asyncio.fixture(scope="function")
async def client(catalog: CatalogSynchronizer) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client wired to the test catalog, admin auth bypassed."""
    app.state.catalog = catalog
    app.dependency_overrides[verify_api_key] = lambda: "test-key"

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def unauthenticated_client(catalog: CatalogSynchronizer) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client with the real API key check in place."""
    app.state.catalog = catalog
    app.dependency_overrides.clear()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def make_property_payload(**overrides) -> dict:
    """Create a valid property creation payload."""
    defaults = {
        "title": "Apartamento em Pinheiros",
        "public_address": "Pinheiros, São Paulo - SP",
        "full_address": "Rua dos Pinheiros, 1200, apto 54 - São Paulo - SP",
        "price": 2500,
        "listing_kind": "rent",
        "bedroom_count": 2,
        "bathroom_count": 1,
        "area_sq_meters": 65.0,
        "primary_image_ref": "https://images.example.com/pinheiros.jpg",
        "additional_image_refs": ["https://images.example.com/pinheiros-2.jpg"],
        "description": "Apartamento reformado, próximo ao metrô.",
        "contact_phone": "+55 11 99999-0000",
        "contact_email": "corretor@example.com",
    }
    defaults.update(overrides)
    return defaults


def make_record(**overrides) -> PropertyRead:
    """Build a catalog record without touching the store."""
    payload = make_property_payload(**overrides)
    payload.setdefault("id", uuid4())
    return PropertyRead.model_validate(payload)


def make_workbook(rows: Sequence[Dict[str, Any]], headers: Optional[Sequence[str]] = None) -> bytes:
    """Serialize dict rows into an .xlsx (first sheet, header row first)."""
    if headers is None:
        headers = list(rows[0].keys()) if rows else ["Título"]
    wb = Workbook()
    ws = wb.active
    ws.append(list(headers))
    for row in rows:
        ws.append([row.get(h) for h in headers])
    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def make_import_row(**overrides) -> dict:
    """A workbook row using the Portuguese export headers."""
    defaults = {
        "Título": "Casa em Vila Madalena",
        "Endereço": "Vila Madalena, São Paulo - SP",
        "Tipo": "Venda",
        "Preço": "R$ 1.200.000",
        "Quartos": 3,
        "Banheiros": 2,
        "Área (m²)": 120,
        "imageUrl": "https://images.example.com/madalena.jpg",
        "Status": "Ativo",
        "Destaque": "Não",
    }
    defaults.update(overrides)
    return defaults
