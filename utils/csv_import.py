# utils/csv_import.py
"""
Activity rows from an uploaded CSV sheet.

Header columns: "Activity Name", "Qty" (or "Quantity"), "Unit", "Rate",
"Start Date", "End Date". Any problem aborts the whole import; callers
never get a partial list.
"""
from __future__ import annotations

import csv
import io
import math
from datetime import date
from typing import Any, Optional, Union

NAME_COLUMN = "Activity Name"
QTY_COLUMNS = ("Qty", "Quantity")


class CsvImportError(ValueError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def to_number(value: Any, default: float = 0.0) -> float:
    """Lenient numeric coercion: blanks, junk and non-finite values become `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        n = float(str(value).strip())
    except ValueError:
        return default
    return n if math.isfinite(n) else default


def _parse_date(raw: str, line: int, column: str, errors: list[str]) -> Optional[str]:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw).isoformat()
    except ValueError:
        errors.append(f"line {line}: invalid {column} '{raw}' (expected YYYY-MM-DD)")
        return None


def parse_activities_csv(data: Union[bytes, str]) -> list[dict]:
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise CsvImportError(["file is not valid UTF-8 text"])
    else:
        text = data.lstrip("\ufeff")

    errors: list[str] = []
    out: list[dict] = []
    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        header: Optional[list[str]] = None
        for row in reader:
            if not row or all(not cell.strip() for cell in row):
                continue
            if header is None:
                header = [h.strip() for h in row]
                if NAME_COLUMN not in header:
                    raise CsvImportError([f"missing '{NAME_COLUMN}' column"])
                continue

            line = reader.line_num
            if len(row) != len(header):
                errors.append(f"line {line}: expected {len(header)} fields, got {len(row)}")
                continue
            rec = dict(zip(header, (cell.strip() for cell in row)))
            qty = next((rec[c] for c in QTY_COLUMNS if rec.get(c)), None)
            start = _parse_date(rec.get("Start Date", ""), line, "Start Date", errors)
            end = _parse_date(rec.get("End Date", ""), line, "End Date", errors)
            name = rec.get(NAME_COLUMN, "")
            if not name:
                continue
            out.append(
                {
                    "name": name,
                    "quantity": to_number(qty),
                    "unit": rec.get("Unit", ""),
                    "rate": to_number(rec.get("Rate")),
                    "start_date": start,
                    "end_date": end,
                }
            )
    except csv.Error as e:
        raise CsvImportError([f"line {reader.line_num}: {e}"])

    if header is None:
        raise CsvImportError(["file is empty"])
    if errors:
        raise CsvImportError(errors)
    return out


def total_budget(rows: list[Any]) -> float:
    """Sum of quantity x rate over activity rows (dicts or objects)."""
    total = 0.0
    for r in rows:
        get = r.get if isinstance(r, dict) else (lambda k, _r=r: getattr(_r, k, None))
        total += to_number(get("quantity")) * to_number(get("rate"))
    return total
