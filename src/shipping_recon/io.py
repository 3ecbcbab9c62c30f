from __future__ import annotations
import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple


log = logging.getLogger(__name__)

REPORT_HEADERS = [
    "itemID",
    "comunaCode",
    "locality",
    "startDate",
    "status",
    "eomCount",
    "givCount",
    "serviceable",
    "facility",
    "deliveryType",
    "availableEomOptions",
    "availableGivOptions",
    "PresentinEomnotGiv",
    "PresentinGivnotEom",
]

# Input column -> accepted header spellings
INPUT_COLUMNS = {
    "itemID": ("itemID",),
    "comunaCode": ("comunaCode",),
    "locality": ("locality",),
    "date": ("date", "startDate"),
}


class InputRow(NamedTuple):
    item_id: str
    comuna_code: str
    locality: str
    start_date: str


def _val_to_str(v) -> str:
    # Excel numeric cells: 13010.0 -> '13010'
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return "" if v is None else str(v)


def _rows_from_table(table: List[List[str]]) -> List[Dict[str, str]]:
    """Turn a header-led grid into dict rows, skipping blank lines."""
    header_idx = -1
    for i, row in enumerate(table):
        if any(c.strip() for c in row):
            header_idx = i
            break
    if header_idx == -1:
        return []
    header = [c.strip() for c in table[header_idx]]
    rows: List[Dict[str, str]] = []
    for raw in table[header_idx + 1:]:
        if not raw or not any(c.strip() for c in raw):
            continue
        d: Dict[str, str] = {}
        for i, name in enumerate(header):
            if not name:
                continue
            d[name] = raw[i].strip() if i < len(raw) else ""
        rows.append(d)
    return rows


def read_rows(input_path: Path) -> List[Dict[str, str]]:
    """Read a CSV and return a list of dict rows keyed by the header row."""
    with input_path.open("r", newline="", encoding="utf-8-sig") as f:
        return _rows_from_table(list(csv.reader(f)))


def _read_rows_xlsx(input_path: Path) -> List[Dict[str, str]]:
    from openpyxl import load_workbook

    wb = load_workbook(filename=str(input_path), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        table = [[_val_to_str(v) for v in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    return _rows_from_table(table)


def read_any_rows(input_path: Path) -> List[Dict[str, str]]:
    ext = input_path.suffix.lower()
    if ext in (".xlsx", ".xlsm", ".xltx", ".xltm"):
        return _read_rows_xlsx(input_path)
    # default try CSV
    return read_rows(input_path)


def _first_value(row: Dict[str, str], names) -> str:
    for name in names:
        v = (row.get(name) or "").strip()
        if v:
            return v
    return ""


def to_input_row(row: Dict[str, str]) -> InputRow | None:
    values = {column: _first_value(row, names) for column, names in INPUT_COLUMNS.items()}
    if not all(values.values()):
        return None
    return InputRow(values["itemID"], values["comunaCode"], values["locality"], values["date"])


def read_input_rows(input_path: Path) -> List[InputRow]:
    """Read reconciliation inputs, skipping rows that miss any required field."""
    out: List[InputRow] = []
    for row in read_any_rows(input_path):
        parsed = to_input_row(row)
        if parsed is None:
            log.warning(f"Skipping row with missing data: {row}")
            continue
        out.append(parsed)
    log.info(f"Read {len(out)} input rows from {input_path}")
    return out


def write_report_csv(output_path: Path, records: Iterable) -> int:
    """Write report records (anything with ``to_row()``) as a header-led CSV."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with output_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=REPORT_HEADERS)
        writer.writeheader()
        for r in records:
            writer.writerow(r.to_row())
            count += 1
    return count
