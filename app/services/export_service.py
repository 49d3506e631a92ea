"""Export formatter — projects a list of properties onto the fixed download schema."""
import re
import unicodedata
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Optional, Sequence
from urllib.parse import quote

from app.config import settings
from app.core.exceptions import ExportError
from app.core.logging import get_logger
from app.models.enums import ListingKind, PropertyStatus
from app.schemas.property_schema import PropertyRead
from app.services.workbook_service import Column, build_workbook

logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

EXPORT_COLUMNS = (
    Column("ID", 38),
    Column("Título", 40),
    Column("Endereço", 40),
    Column("Tipo", 10),
    Column("Preço", 20),
    Column("Quartos", 10),
    Column("Banheiros", 10),
    Column("Área (m²)", 12),
    Column("Status", 12),
    Column("Destaque", 10),
)

KIND_LABELS = {
    ListingKind.RENT: "Aluguel",
    ListingKind.SALE: "Venda",
}

STATUS_LABELS = {
    PropertyStatus.ACTIVE: "Ativo",
    PropertyStatus.PENDING: "Pendente",
    PropertyStatus.ARCHIVED: "Arquivado",
}


@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: bytes
    media_type: str = XLSX_MEDIA_TYPE


def group_thousands(amount: Decimal) -> str:
    """1200000 -> '1.200.000' (pt-BR grouping, no decimals)."""
    whole = int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"{whole:,}".replace(",", ".")


def format_price(price: Decimal, kind: ListingKind) -> str:
    """'R$ 2.500/mês' for rent, 'R$ 1.200.000' for sale."""
    text = f"{settings.currency_symbol} {group_thousands(price)}"
    if kind == ListingKind.RENT:
        text += "/mês"
    return text


def status_label(status: Optional[PropertyStatus]) -> str:
    return STATUS_LABELS.get(status, "Ativo")


def property_to_row(prop: PropertyRead) -> List[Any]:
    return [
        str(prop.id),
        prop.title,
        prop.public_address,
        KIND_LABELS[prop.listing_kind],
        format_price(prop.price, prop.listing_kind),
        prop.bedroom_count,
        prop.bathroom_count,
        prop.area_sq_meters,
        status_label(prop.status),
        "Sim" if prop.featured else "Não",
    ]


_UNSAFE_FILENAME_CHARS = re.compile(r'[\x00-\x1f\x7f"\\/:*?<>|;]')
_DEFAULT_FILENAME = "imoveis"


def export_filename(filename: Optional[str]) -> str:
    """Safe download name: no quotes, control characters or path separators; `.xlsx` suffix."""
    name = _UNSAFE_FILENAME_CHARS.sub("", filename or "").strip(" .")
    if not name:
        name = _DEFAULT_FILENAME
    if not name.lower().endswith(".xlsx"):
        name += ".xlsx"
    return name


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name plus the UTF-8 name (RFC 6266)."""
    name = export_filename(filename)
    folded = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    fallback = export_filename(folded[:-len(".xlsx")])
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name)}"


def export_to_table(properties: Sequence[PropertyRead], filename: str) -> ExportFile:
    """Build the .xlsx download for the given (already filtered) properties."""
    if not properties:
        raise ExportError("Não há dados para exportar")
    if len(properties) > settings.export_max_rows:
        raise ExportError(
            f"Exportação limitada a {settings.export_max_rows} imóveis; refine os filtros",
            detail={"rows": len(properties)},
        )

    content = build_workbook(
        (property_to_row(prop) for prop in properties),
        EXPORT_COLUMNS,
        sheet_name=settings.export_sheet_name,
    )
    name = export_filename(filename)
    logger.info("Exported %d properties to %s", len(properties), name)
    return ExportFile(filename=name, content=content)
