"""Workbook I/O — read the first sheet of an .xlsx into row dicts, write rows back out.

The header row drives the column mapping on read. openpyxl has no
streaming writer we rely on here, so exports are built fully in memory.
"""
import io
import zlib
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from app.core.exceptions import ParseError
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Column:
    header: str
    width: int


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# XML errors (ElementTree and lxml both derive from SyntaxError) surface
# lazily from iter_rows in read_only mode, not from load_workbook
_READ_ERRORS = (InvalidFileException, BadZipFile, zlib.error, KeyError, ValueError, OSError, SyntaxError)


def parse_workbook(data: bytes) -> List[Dict[str, Any]]:
    """Parse the first sheet into dicts keyed by the header row.

    Blank rows are skipped. Header cells left empty drop their column.
    Raises ParseError when the file or its first sheet cannot be read.
    """
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except _READ_ERRORS as e:
        raise ParseError("Não foi possível ler a planilha", detail=str(e)) from e

    try:
        rows = _read_first_sheet(wb)
    except _READ_ERRORS as e:
        raise ParseError("Não foi possível ler a planilha", detail=str(e)) from e
    finally:
        wb.close()

    logger.debug("Parsed workbook: %d rows", len(rows))
    return rows


def _read_first_sheet(wb) -> List[Dict[str, Any]]:
    if not wb.worksheets:
        return []
    values = wb.worksheets[0].iter_rows(values_only=True)

    header = next(values, None)
    if header is None:
        return []
    headers = ["" if _is_blank(cell) else str(cell).strip() for cell in header]

    rows: List[Dict[str, Any]] = []
    for raw in values:
        if all(_is_blank(cell) for cell in raw):
            continue
        rows.append({
            name: cell
            for name, cell in zip(headers, raw)
            if name
        })
    return rows


def build_workbook(
    rows: Iterable[Sequence[Any]],
    columns: Sequence[Column],
    sheet_name: str = "Dados",
) -> bytes:
    """Write a single-sheet workbook with a bold header row and fixed column widths."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]  # Excel sheet-name limit

    ws.append([column.header for column in columns])
    bold_font = Font(bold=True)
    for cell in ws[1]:
        cell.font = bold_font

    for row in rows:
        ws.append(list(row))

    for i, column in enumerate(columns, 1):
        ws.column_dimensions[get_column_letter(i)].width = column.width

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()
