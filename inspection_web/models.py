from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from sqlmodel import SQLModel, Field


class SalesType(str, Enum):
    DOMESTIC = "domestic"
    EXPORT = "export"


SALES_TYPE_LABELS = {
    SalesType.DOMESTIC.value: "內銷",
    SalesType.EXPORT.value: "外銷",
}

# customer is pinned to this value for domestic sales
DOMESTIC_CUSTOMER = "大井"

# closed set, display order
DEFECT_CATEGORIES = [
    "無圖面",      # no drawing
    "圖面不符",    # drawing mismatch
    "尺寸NG",
    "外觀NG",
    "作業失誤",    # operator error
    "特性異常",    # characteristic anomaly
]


class DefectEntry(SQLModel):
    defect_category: str = ""
    defect_status: str = ""     # meaningful once defect_category is set
    countermeasure: str = ""    # meaningful once defect_status is set


class InspectionRecord(SQLModel):
    id: Optional[str] = None    # server-assigned; None while creating

    sales_type: str = Field(default=SalesType.DOMESTIC.value)
    customer: str = Field(default=DOMESTIC_CUSTOMER)
    production_order: str = ""

    date: str = ""   # "YYYY-MM-DD" in the draft, raw string on fetched records
    time: str = ""   # "HH:MM" in the draft

    operator: str = ""
    drawing_version: str = ""
    inspector: str = ""

    # filled in by the backend, never edited here
    department: Optional[str] = None
    first_piece_inspection: Optional[str] = None

    defects: List[DefectEntry] = Field(default_factory=list)


# ---------------- WIRE MAPPING ----------------
# python attribute -> JSON key used by the items API

RECORD_WIRE_NAMES = {
    "sales_type": "salesType",
    "customer": "customer",
    "production_order": "productionOrder",
    "date": "date",
    "time": "time",
    "operator": "operator",
    "drawing_version": "drawingVersion",
    "inspector": "inspector",
}

DISPLAY_ONLY_WIRE_NAMES = {
    "department": "department",
    "first_piece_inspection": "firstPieceInspection",
}

DEFECT_WIRE_NAMES = {
    "defect_category": "defectCategory",
    "defect_status": "defectStatus",
    "countermeasure": "countermeasure",
}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def defect_from_wire(data: Any) -> DefectEntry:
    if not isinstance(data, Mapping):
        return DefectEntry()
    return DefectEntry(**{attr: _text(data.get(key)) for attr, key in DEFECT_WIRE_NAMES.items()})


def defect_to_wire(entry: DefectEntry) -> Dict[str, str]:
    return {key: getattr(entry, attr) for attr, key in DEFECT_WIRE_NAMES.items()}


def record_from_wire(data: Mapping[str, Any]) -> InspectionRecord:
    """
    Build a record from an items API object.
    No validation: missing fields become "", null defects become [].
    """
    raw_id = data.get("_id", data.get("id"))
    values: Dict[str, Any] = {attr: _text(data.get(key)) for attr, key in RECORD_WIRE_NAMES.items()}
    if not values["sales_type"]:
        values["sales_type"] = SalesType.DOMESTIC.value
    for attr, key in DISPLAY_ONLY_WIRE_NAMES.items():
        v = data.get(key)
        values[attr] = None if v is None else str(v)

    defects = data.get("defects") or []
    if not isinstance(defects, (list, tuple)):
        defects = []

    return InspectionRecord(
        id=None if raw_id is None else str(raw_id),
        defects=[defect_from_wire(d) for d in defects],
        **values,
    )


def record_to_wire(record: InspectionRecord, include_id: bool = False) -> Dict[str, Any]:
    out: Dict[str, Any] = {key: getattr(record, attr) for attr, key in RECORD_WIRE_NAMES.items()}
    for attr, key in DISPLAY_ONLY_WIRE_NAMES.items():
        v = getattr(record, attr)
        if v is not None:
            out[key] = v
    out["defects"] = [defect_to_wire(d) for d in record.defects]
    if include_id and record.id is not None:
        out["_id"] = record.id
    return out
