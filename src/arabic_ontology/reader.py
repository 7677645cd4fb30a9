"""Delimited source reader: header validation and row records.

Byte-level CSV handling (quoting, doubled quotes, CRLF/CR/LF
line endings) is delegated to :mod:`csv`; this module adds the header
contract, per-row tolerance and typed cell accessors used by the builders.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from arabic_ontology.exceptions import (
    EmptyFile,
    MalformedRow,
    MissingColumns,
    SourceError,
    SourceFileMissing,
)

logger = logging.getLogger(__name__)

Row = dict[str, str]

# Cell value some exports use for "no value".
NULL_VALUE = "NULL"

_BOM = "\ufeff"


@dataclass(slots=True)
class Table:
    """Parsed rows of one source file."""

    source: str
    columns: list[str]
    rows: list[Row] = field(default_factory=list)
    lines: list[int] = field(default_factory=list)
    malformed: int = 0

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def records(self) -> Iterator[tuple[int, Row]]:
        """Yield ``(line_number, row)`` pairs."""
        return zip(self.lines, self.rows)


def parse_table(
    handle: Iterable[str],
    required_columns: Sequence[str] = (),
    *,
    source: str = "<stream>",
) -> Table:
    """Parse delimited text into a :class:`Table`.

    Raises :class:`EmptyFile` when there is no header row and
    :class:`MissingColumns` when the header lacks any of
    *required_columns*. A header with no data rows is a valid, empty table.
    Rows ``csv`` cannot parse, or with more values than header columns, are
    counted in ``Table.malformed`` and skipped.
    """
    reader = csv.reader(handle)

    header: list[str] | None = None
    while header is None:
        try:
            raw = next(reader)
        except StopIteration:
            raise EmptyFile(source) from None
        except csv.Error as e:
            raise MalformedRow(source, reader.line_num, str(e)) from e
        if any(cell.strip() for cell in raw):
            header = [cell.strip() for cell in raw]
    header[0] = header[0].lstrip(_BOM)

    missing = [c for c in required_columns if c not in header]
    if missing:
        raise MissingColumns(source, missing)

    table = Table(source=source, columns=header)
    width = len(header)
    while True:
        try:
            values = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            table.malformed += 1
            logger.debug(f"{source}:{reader.line_num}: unparsable row: {e}")
            continue

        if not any(v.strip() for v in values):
            continue
        if any(v.strip() for v in values[width:]):
            table.malformed += 1
            logger.debug(
                f"{source}:{reader.line_num}: {len(values)} values for "
                f"{width} columns"
            )
            continue

        table.rows.append({
            col: values[i].strip() if i < len(values) else ""
            for i, col in enumerate(header)
        })
        table.lines.append(reader.line_num)

    return table


def read_table(
    path: str | Path,
    required_columns: Sequence[str] = (),
) -> Table:
    """Read a UTF-8 delimited file; see :func:`parse_table`."""
    path = Path(path)
    if not path.is_file():
        raise SourceFileMissing(path.name)

    try:
        with open(path, encoding="utf-8-sig", newline="") as fh:
            table = parse_table(fh, required_columns, source=path.name)
    except UnicodeDecodeError as e:
        raise SourceError(path.name, f"{path.name} is not valid UTF-8: {e}") from e

    logger.debug(
        f"Read {path.name}: {len(table)} rows, {table.malformed} malformed"
    )
    return table


# ---------------------------------------------------------------------------
# Cell accessors
# ---------------------------------------------------------------------------

def optional(row: Row, key: str) -> str | None:
    """Cell value, or None for a missing column, empty cell or ``NULL``."""
    value = row.get(key)
    if not value or value == NULL_VALUE:
        return None
    return value


def required(row: Row, key: str) -> str:
    return row.get(key) or ""


def integer(row: Row, key: str) -> int | None:
    value = optional(row, key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def flag(row: Row, key: str) -> bool:
    """True when the cell holds a value other than empty or ``NULL``."""
    return optional(row, key) is not None
