# inspection_web/export.py
from __future__ import annotations

from typing import List

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from inspection_web.formatting import display_date, display_time
from inspection_web.models import SALES_TYPE_LABELS, InspectionRecord

RECORD_COLUMNS = [
    ("內外銷", 10),
    ("客戶", 14),
    ("製令單號", 20),
    ("日期", 12),
    ("時間", 8),
    ("作業員", 12),
    ("圖面版次", 12),
    ("檢驗員", 12),
    ("部門", 12),
    ("首件檢驗", 12),
    ("不良筆數", 10),
]

DEFECT_COLUMNS = [
    ("製令單號", 20),
    ("項次", 6),
    ("不良類別", 12),
    ("不良狀況", 30),
    ("對策", 30),
]


def _header(ws, columns) -> None:
    for i, (title, width) in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=i, value=title)
        cell.font = Font(bold=True)
        ws.column_dimensions[get_column_letter(i)].width = width
    ws.freeze_panes = "A2"


def build_workbook(records: List[InspectionRecord]) -> Workbook:
    """Records sheet plus one row per defect on a second sheet."""
    wb = Workbook()
    ws = wb.active
    ws.title = "檢驗紀錄"
    _header(ws, RECORD_COLUMNS)

    ds = wb.create_sheet("不良明細")
    _header(ds, DEFECT_COLUMNS)

    for r in records:
        ws.append([
            SALES_TYPE_LABELS.get(r.sales_type, r.sales_type),
            r.customer,
            r.production_order,
            display_date(r.date),
            display_time(r.time),
            r.operator,
            r.drawing_version,
            r.inspector,
            r.department or "",
            r.first_piece_inspection or "",
            len(r.defects),
        ])
        for n, d in enumerate(r.defects, start=1):
            ds.append([r.production_order, n, d.defect_category, d.defect_status, d.countermeasure])

    return wb
