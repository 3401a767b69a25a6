import io
from datetime import datetime, timezone
from typing import Any, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from labinventory.schemas import ComponentRow, MovementRow

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

INVENTORY_COLUMNS = [
    ("ID", 8),
    ("Name", 24),
    ("Description", 32),
    ("Quantity", 10),
    ("Category", 16),
    ("Location", 16),
    ("Status", 14),
]

HISTORY_COLUMNS = [
    ("ID", 8),
    ("Date", 20),
    ("Component", 24),
    ("Kind", 10),
    ("Quantity", 10),
    ("Delta", 10),
    ("Person", 18),
    ("Notes", 32),
]


def _norm_str(v: Any, default: str = "") -> str:
    if v is None:
        return default
    s = str(v).strip()
    return s if s else default


def _norm_dt(v: Any):
    # excel cells cannot carry a timezone
    if isinstance(v, datetime) and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


def _build(
    title: str,
    table_name: str,
    columns: Sequence[tuple[str, int]],
    rows: list[list],
    number_formats: dict[int, str] | None = None,
) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title

    header_font = Font(bold=True)
    header_fill = PatternFill("solid", fgColor="DDDDDD")
    header_align = Alignment(horizontal="center", vertical="center")

    ws.append([name for name, _ in columns])
    ws.row_dimensions[1].height = 26
    for col in range(1, len(columns) + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_align

    for row in rows:
        ws.append(row)

    ws.freeze_panes = "A2"

    for col, fmt in (number_formats or {}).items():
        for r in range(2, len(rows) + 2):
            ws.cell(row=r, column=col).number_format = fmt

    for idx, (_, width) in enumerate(columns, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width

    # a table needs at least one data row to be a valid range
    if rows:
        last_col = get_column_letter(len(columns))
        table = Table(displayName=table_name, ref=f"A1:{last_col}{len(rows) + 1}")
        table.tableStyleInfo = TableStyleInfo(
            name="TableStyleMedium9",
            showFirstColumn=False,
            showLastColumn=False,
            showRowStripes=True,
            showColumnStripes=False,
        )
        ws.add_table(table)

    ws.append([])
    ws.append(["Exported at", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def inventory_workbook(components: list[ComponentRow]) -> bytes:
    rows = [
        [
            c.id,
            _norm_str(c.name, "unnamed"),
            _norm_str(c.description),
            c.quantity,
            _norm_str(c.category_name),
            _norm_str(c.location_name),
            _norm_str(c.status),
        ]
        for c in components
    ]
    return _build("Inventory", "Inventory", INVENTORY_COLUMNS, rows, number_formats={4: "0"})


def history_workbook(movements: list[MovementRow]) -> bytes:
    rows = [
        [
            m.id,
            _norm_dt(m.occurred_at),
            m.component_name,
            m.kind,
            m.quantity,
            m.delta,
            m.actor,
            _norm_str(m.notes),
        ]
        for m in movements
    ]
    return _build(
        "History",
        "History",
        HISTORY_COLUMNS,
        rows,
        number_formats={2: "yyyy-mm-dd hh:mm:ss", 5: "0", 6: "+0;-0;0"},
    )
