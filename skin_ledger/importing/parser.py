"""Pure parsing functions for transaction import text. No I/O."""
from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import FormatError
from ..models import ImportRow

_LINE_BREAK_RE = re.compile(r"\r\n|\n|\r")
_QUOTE = '"'

NAN = float("nan")


@dataclass(frozen=True)
class Column:
    """One column of the import file contract."""

    name: str
    required: bool = False

    @property
    def key(self) -> str:
        return self.name.lower()


ImportSchema = tuple[Column, ...]

SKIN_ID = Column("skinId", required=True)
TYPE = Column("type", required=True)
QUANTITY = Column("quantity", required=True)
UNIT_PRICE = Column("unitPrice", required=True)
COMMISSION_PERCENT = Column("commissionPercent")
EXECUTED_AT = Column("executedAt")

DEFAULT_SCHEMA: ImportSchema = (
    SKIN_ID,
    TYPE,
    QUANTITY,
    UNIT_PRICE,
    COMMISSION_PERCENT,
    EXECUTED_AT,
)


def parse_line(line: str, delimiter: str = ",") -> list[str]:
    """Split one delimited line into trimmed fields.

    The delimiter is ignored inside double-quoted spans and a doubled quote
    inside a quoted span is a literal quote. Malformed quoting never raises;
    an unbalanced quote simply runs to the end of the line.

    Examples:
        'a, b ,c'      → ["a", "b", "c"]
        '"a,b",2'      → ["a,b", "2"]
        'x,"a ""b"" c"' → ['x', 'a "b" c']
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        ch = line[i]
        if ch == _QUOTE:
            if in_quotes and i + 1 < length and line[i + 1] == _QUOTE:
                current.append(_QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1

    fields.append("".join(current).strip())
    return fields


def to_number(raw: str) -> float:
    """Numeric cast that yields NaN instead of raising."""
    text = (raw or "").strip()
    if not text:
        return NAN
    try:
        return float(text)
    except ValueError:
        return NAN


def split_lines(text: str) -> list[tuple[int, str]]:
    """Return ``(line_no, stripped_line)`` for every non-blank line.

    ``line_no`` is the 1-based physical line number in ``text``.
    """
    lines: list[tuple[int, str]] = []
    for index, line in enumerate(_LINE_BREAK_RE.split(text or ""), start=1):
        stripped = line.strip()
        if stripped:
            lines.append((index, stripped))
    return lines


def resolve_columns(
    header: list[str], schema: ImportSchema = DEFAULT_SCHEMA
) -> dict[str, int | None]:
    """Map each schema column to its header position (None when absent).

    Header names are matched case-insensitively. Raises FormatError naming
    the first missing required column, in schema order.
    """
    positions: dict[str, int] = {}
    for index, name in enumerate(header):
        positions.setdefault(name.strip().lower(), index)

    resolved: dict[str, int | None] = {}
    for column in schema:
        index = positions.get(column.key)
        if index is None and column.required:
            raise FormatError(f"Missing required column: {column.name}")
        resolved[column.name] = index
    return resolved


def _cell(fields: list[str], index: int | None) -> str:
    if index is None or index >= len(fields):
        return ""
    return fields[index]


def parse_table(
    text: str,
    schema: ImportSchema = DEFAULT_SCHEMA,
    default_commission_percent: float = 13.0,
    delimiter: str = ",",
) -> list[ImportRow]:
    """Parse import text into candidate rows.

    Requires a header line plus at least one data line. Semantic validation
    of the values is left to the import pipeline.
    """
    lines = split_lines(text)
    if len(lines) < 2:
        raise FormatError("Import needs a header row and at least one data row")

    _, header_line = lines[0]
    columns = resolve_columns(parse_line(header_line, delimiter), schema)

    rows: list[ImportRow] = []
    for line_no, line in lines[1:]:
        fields = parse_line(line, delimiter)

        commission_raw = _cell(fields, columns.get(COMMISSION_PERCENT.name))
        commission = (
            to_number(commission_raw) if commission_raw else default_commission_percent
        )
        executed_at = _cell(fields, columns.get(EXECUTED_AT.name)) or None

        rows.append(
            ImportRow(
                line_no=line_no,
                skin_id=to_number(_cell(fields, columns.get(SKIN_ID.name))),
                kind=_cell(fields, columns.get(TYPE.name)).lower(),
                quantity=to_number(_cell(fields, columns.get(QUANTITY.name))),
                unit_price=to_number(_cell(fields, columns.get(UNIT_PRICE.name))),
                commission_percent=commission,
                executed_at=executed_at,
            )
        )

    return rows
