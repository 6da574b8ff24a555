"""Unit tests for record wire mapping and date/time formatting."""

from datetime import datetime

import pytest

from inspection_web.formatting import (
    display_date,
    display_time,
    now_form_values,
    to_form_date,
    to_form_time,
)
from inspection_web.models import DefectEntry, InspectionRecord, record_from_wire, record_to_wire


def test_record_from_wire_maps_camel_case():
    record = record_from_wire({
        "_id": "665f1c",
        "salesType": "export",
        "customer": "ACME",
        "productionOrder": "MO20250601000001",
        "date": "2025-06-01",
        "time": "08:30",
        "operator": "王小明",
        "drawingVersion": "C",
        "inspector": "陳檢驗",
        "department": "製一課",
        "firstPieceInspection": "合格",
        "defects": [{"defectCategory": "外觀NG", "defectStatus": "刮傷", "countermeasure": "重工"}],
    })

    assert record.id == "665f1c"
    assert record.sales_type == "export"
    assert record.production_order == "MO20250601000001"
    assert record.drawing_version == "C"
    assert record.first_piece_inspection == "合格"
    assert record.defects[0].defect_status == "刮傷"


def test_record_from_wire_defaults_missing_fields():
    record = record_from_wire({"id": 12, "defects": "garbage"})

    assert record.id == "12"
    assert record.sales_type == "domestic"
    assert record.customer == ""
    assert record.department is None
    assert record.defects == []


def test_record_to_wire_omits_unset_display_fields():
    record = InspectionRecord(id="r1", production_order="X", defects=[DefectEntry(defect_category="無圖面")])

    out = record_to_wire(record)
    assert "department" not in out
    assert "_id" not in out
    assert out["defects"] == [{"defectCategory": "無圖面", "defectStatus": "", "countermeasure": ""}]

    assert record_to_wire(record, include_id=True)["_id"] == "r1"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2025-06-01", "2025-06-01"),
        ("2025-06-01T16:00:00.000Z", "2025-06-01"),
        ("2025-06-01 08:30:00", "2025-06-01"),
        ("2025/06/01", "2025-06-01"),
        ("", ""),
        ("not a date", "not a date"),
    ],
)
def test_to_form_date(raw, expected):
    assert to_form_date(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("08:30", "08:30"),
        ("8:05", "08:05"),
        ("14:05:59", "14:05"),
        ("2025-06-01T06:30:00.000Z", "06:30"),
        ("", ""),
        ("noon", "noon"),
    ],
)
def test_to_form_time(raw, expected):
    assert to_form_time(raw) == expected


def test_display_formats():
    assert display_date("2025-06-01T00:00:00Z") == "2025/06/01"
    assert display_date("???") == "???"
    assert display_time("09:15:00") == "09:15"


def test_now_form_values():
    assert now_form_values(datetime(2024, 12, 31, 23, 59, 30)) == ("2024-12-31", "23:59")
