"""Convert CSV exports into typed records."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

_MIN_COLUMNS = 5


class RecordsError(RuntimeError):
    """Raised when a CSV source cannot be read."""


@dataclass(frozen=True)
class Record:
    """A single data row from a CSV export."""

    id: str
    name: str
    value: float
    category: str
    timestamp: str


def _parse_value(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        return 0.0


def process_rows(rows: Iterable[Sequence[str]]) -> List[Record]:
    """Turn raw CSV rows into records.

    The first row is treated as a header. Rows with fewer than five columns
    are skipped and values that are not numbers become ``0.0``.
    """

    records: List[Record] = []
    iterator = iter(rows)
    next(iterator, None)
    for row in iterator:
        if len(row) < _MIN_COLUMNS:
            continue
        records.append(
            Record(
                id=row[0],
                name=row[1],
                value=_parse_value(row[2]),
                category=row[3],
                timestamp=row[4],
            )
        )
    return records


def load_records(path: Path) -> List[Record]:
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            rows = list(csv.reader(handle))
    except OSError as exc:
        raise RecordsError(f"Failed to open CSV file {path}: {exc}") from exc
    except (csv.Error, UnicodeDecodeError) as exc:
        raise RecordsError(f"Failed to read CSV file {path}: {exc}") from exc
    return process_rows(rows)


__all__ = ["Record", "RecordsError", "load_records", "process_rows"]
