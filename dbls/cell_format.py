from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
import json
import unicodedata
import uuid


NULL_TEXT = "NULL"
_UUID_BYTE_LENGTH = 16
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


class CellKind(Enum):
    NULL = "null"
    TEXT = "text"
    UUID = "uuid"
    BINARY = "binary"
    NUMERIC = "numeric"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: object


def classify(value: object) -> Cell:
    """Resolve the display kind of a driver value.

    Binary values exactly 16 bytes long are treated as UUIDs, matching how
    Postgres hands back ``uuid`` columns through some codecs.
    """
    if value is None:
        return Cell(CellKind.NULL, None)
    if isinstance(value, str):
        return Cell(CellKind.TEXT, value)
    if isinstance(value, uuid.UUID):
        return Cell(CellKind.UUID, value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) == _UUID_BYTE_LENGTH:
            return Cell(CellKind.UUID, uuid.UUID(bytes=raw))
        return Cell(CellKind.BINARY, raw)
    if isinstance(value, (bool, int, float, Decimal)):
        return Cell(CellKind.NUMERIC, value)
    return Cell(CellKind.FALLBACK, value)


def _escape_character(character: str) -> str:
    if character in _CONTROL_ESCAPES:
        return _CONTROL_ESCAPES[character]
    if unicodedata.category(character) == "Cc":
        return f"\\x{ord(character):02x}"
    return character


def escape_control_characters(text: str) -> str:
    """Keep a cell on one grid line: newlines, tabs and other C0/C1 controls
    are written as backslash escapes."""
    if text.isprintable():
        return text
    return "".join(_escape_character(character) for character in text)


def stringify(cell: Cell) -> str:
    if cell.kind is CellKind.NULL:
        return NULL_TEXT
    if cell.kind is CellKind.TEXT:
        return escape_control_characters(str(cell.value))
    if cell.kind is CellKind.UUID:
        return str(cell.value)
    if cell.kind is CellKind.BINARY:
        raw = cell.value if isinstance(cell.value, bytes) else bytes()
        return escape_control_characters(raw.decode("utf-8", errors="replace"))
    if cell.kind is CellKind.NUMERIC:
        if isinstance(cell.value, bool):
            return "true" if cell.value else "false"
        return str(cell.value)
    if isinstance(cell.value, (dict, list)):
        return json.dumps(cell.value, ensure_ascii=True)
    return escape_control_characters(str(cell.value))


def format_cell_value(value: object) -> str:
    return stringify(classify(value))
