"""Mapper service — turns a raw workbook row into a PropertyDraft.

Handles:
- Header aliasing: "Título" / "title" / "Title" → title
- Number parsing: "R$ 2.500,00" → Decimal("2500.00"), 1200000 → Decimal("1200000")
- Boolean mapping: "Sim"/"x"/True → True, "Não"/0 → False
- Listing kind: "Venda" → sale, anything else → rent
- Status labels: "Ativo"/"Pendente"/"Arquivado" or enum values
"""
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from app.config import settings
from app.core.logging import get_logger
from app.models.enums import ListingKind, PropertyStatus
from app.schemas.property_schema import PropertyDraft
from app.services.catalog_service import validate_model

logger = get_logger(__name__)


def _fold(text: str) -> str:
    """Lowercase, strip accents and separators: 'Área (m²)' → 'aream2'."""
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]", "", ascii_text.lower())


_FIELD_ALIASES: Dict[str, tuple] = {
    "title": ("title", "titulo", "imovel", "nome"),
    "public_address": ("publicaddress", "address", "endereco", "localizacao"),
    "full_address": ("fulladdress", "enderecocompleto"),
    "price": ("price", "preco", "valor"),
    "listing_kind": ("type", "listingkind", "tipo"),
    "bedroom_count": ("bedrooms", "bedroomcount", "quartos"),
    "bathroom_count": ("bathrooms", "bathroomcount", "banheiros"),
    "area_sq_meters": ("area", "areasqmeters", "aream2", "areasqm"),
    "primary_image_ref": ("imageurl", "primaryimageref", "image", "imagem", "foto"),
    "additional_image_refs": ("images", "additionalimagerefs", "imagens", "fotos"),
    "description": ("description", "descricao"),
    "status": ("status", "situacao"),
    "is_public": ("ispublic", "public", "publico", "visibilidade"),
    "featured": ("featured", "destaque"),
    "contact_phone": ("contactphone", "phone", "telefone"),
    "contact_email": ("contactemail", "email"),
}

_HEADER_TO_FIELD = {
    alias: field
    for field, aliases in _FIELD_ALIASES.items()
    for alias in aliases
}

_STATUS_ALIASES = {
    "active": PropertyStatus.ACTIVE,
    "ativo": PropertyStatus.ACTIVE,
    "pending": PropertyStatus.PENDING,
    "pendente": PropertyStatus.PENDING,
    "archived": PropertyStatus.ARCHIVED,
    "arquivado": PropertyStatus.ARCHIVED,
}


def normalize_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Map workbook headers onto Property field names. Unknown headers are dropped."""
    normalized: Dict[str, Any] = {}
    for header, value in row.items():
        field = _HEADER_TO_FIELD.get(_fold(str(header)))
        if field and field not in normalized:
            normalized[field] = value
    return normalized


def _blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


_NUMBER_PATTERN = re.compile(r"-?\d[\d\s.,]*")


def parse_number(raw: Any) -> Optional[Decimal]:
    """Parse numbers from cells or pt-BR formatted strings like 'R$ 2.500,00'."""
    if _blank(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        return Decimal(str(raw))

    match = _NUMBER_PATTERN.search(str(raw))
    if not match:
        return None

    num_str = match.group().strip().replace(" ", "")

    if "," in num_str and "." in num_str:
        num_str = num_str.replace(".", "").replace(",", ".")
    elif "," in num_str:
        parts = num_str.split(",")
        if len(parts) == 2 and len(parts[-1]) != 3:
            num_str = num_str.replace(",", ".")
        else:
            num_str = num_str.replace(",", "")
    elif "." in num_str:
        parts = num_str.split(".")
        if len(parts) > 2 or (len(parts) == 2 and len(parts[-1]) == 3):
            num_str = num_str.replace(".", "")

    try:
        return Decimal(num_str)
    except InvalidOperation:
        logger.warning("Failed to parse number from: '%s'", raw)
        return None


def parse_int(raw: Any) -> Optional[int]:
    number = parse_number(raw)
    if number is None:
        return None
    return int(number)


def parse_bool(raw: Any) -> Optional[bool]:
    """Map truthy/falsy cell values. Unrecognised text → None (caller keeps the default)."""
    if _blank(raw):
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float, Decimal)):
        return raw != 0
    raw_lower = str(raw).strip().lower()
    if raw_lower in ("yes", "sim", "s", "true", "verdadeiro", "1", "x", "público", "publico", "✓", "✔"):
        return True
    if raw_lower in ("no", "não", "nao", "n", "false", "falso", "0", "privado"):
        return False
    return None


def parse_listing_kind(raw: Any) -> ListingKind:
    """'Venda' (any case) is a sale; every other label is a rental."""
    if isinstance(raw, str) and raw.strip().lower() == "venda":
        return ListingKind.SALE
    return ListingKind.RENT


def parse_status(raw: Any) -> Optional[PropertyStatus]:
    if _blank(raw):
        return None
    return _STATUS_ALIASES.get(str(raw).strip().lower())


def _as_float(number: Optional[Decimal]) -> Optional[float]:
    return float(number) if number is not None else None


def _text(raw: Any) -> Optional[str]:
    if _blank(raw):
        return None
    return str(raw).strip()


def _image_list(raw: Any) -> List[str]:
    if _blank(raw):
        return []
    return [part.strip() for part in re.split(r"[,;\n]", str(raw)) if part.strip()]


def row_to_draft(row: Mapping[str, Any]) -> PropertyDraft:
    """Coerce one raw workbook row into a validated draft.

    Raises the application ValidationError when a required field is missing
    or a value breaks an invariant.
    """
    fields = normalize_row(row)

    payload: Dict[str, Any] = {
        "title": _text(fields.get("title")),
        "public_address": _text(fields.get("public_address")),
        "full_address": _text(fields.get("full_address")),
        "price": parse_number(fields.get("price")),
        "listing_kind": parse_listing_kind(fields.get("listing_kind")),
        "area_sq_meters": _as_float(parse_number(fields.get("area_sq_meters"))),
        "primary_image_ref": _text(fields.get("primary_image_ref")) or settings.placeholder_image_url,
        "additional_image_refs": _image_list(fields.get("additional_image_refs")),
        "description": _text(fields.get("description")),
        "contact_phone": _text(fields.get("contact_phone")),
        "contact_email": _text(fields.get("contact_email")),
    }

    for field in ("bedroom_count", "bathroom_count"):
        count = parse_int(fields.get(field))
        if count is not None:
            payload[field] = count

    status = parse_status(fields.get("status"))
    if status is not None:
        payload["status"] = status

    for field in ("is_public", "featured"):
        flag = parse_bool(fields.get(field))
        if flag is not None:
            payload[field] = flag

    return validate_model(PropertyDraft, payload)
