# inspection_web/form_state.py
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from inspection_web.errors import FormStateError
from inspection_web.formatting import now_form_values, to_form_date, to_form_time
from inspection_web.models import (
    DEFECT_CATEGORIES,
    DOMESTIC_CUSTOMER,
    DefectEntry,
    InspectionRecord,
    SalesType,
    defect_to_wire,
    record_from_wire,
    record_to_wire,
)

logger = logging.getLogger(__name__)

PRODUCTION_ORDER_LENGTH = 16

EDITABLE_FIELDS = (
    "sales_type",
    "customer",
    "production_order",
    "date",
    "time",
    "operator",
    "drawing_version",
    "inspector",
)

# upstream -> downstream; a field is editable only while the one before it is set
DEFECT_CHAIN = ("defect_category", "defect_status", "countermeasure")

REQUIRED_MESSAGES = {
    "operator": "請輸入作業員",
    "drawing_version": "請輸入圖面版次",
    "inspector": "請輸入檢驗員",
}
CUSTOMER_REQUIRED_MESSAGE = "外銷請輸入客戶名稱"
PRODUCTION_ORDER_MESSAGE = "製令單號須為16碼"


class FormMode(str, Enum):
    IDLE = "idle"
    CREATE = "create"
    EDIT = "edit"


def order_number_length(value: str) -> int:
    """Length as the browser counts it (UTF-16 code units)."""
    return len(value.encode("utf-16-le")) // 2


def is_valid_production_order(value: str) -> bool:
    return order_number_length(value or "") == PRODUCTION_ORDER_LENGTH


# ---------------- SALES TYPE RULES ----------------

def _force_domestic_customer(record: InspectionRecord) -> None:
    record.customer = DOMESTIC_CUSTOMER


def _clear_customer(record: InspectionRecord) -> None:
    record.customer = ""


SALES_TYPE_RULES: Dict[str, Callable[[InspectionRecord], None]] = {
    SalesType.DOMESTIC.value: _force_domestic_customer,
    SalesType.EXPORT.value: _clear_customer,
}


# ---------------- DEFECT CHAIN ----------------

def apply_defect_write(entry: DefectEntry, field: str, value: str) -> bool:
    """
    Write one field of a defect entry under the dependency chain.

    category -> status -> countermeasure: a field can only be written while
    the field before it is non-empty, and every write clears all fields after
    it. Returns False when the write was refused.
    """
    pos = DEFECT_CHAIN.index(field)
    if pos > 0 and not getattr(entry, DEFECT_CHAIN[pos - 1]):
        return False
    setattr(entry, field, value)
    for downstream in DEFECT_CHAIN[pos + 1:]:
        setattr(entry, downstream, "")
    return True


class InspectionFormManager:
    """Owns the draft of one inspection record for one form session."""

    def __init__(self) -> None:
        self.draft: Optional[InspectionRecord] = None
        self.production_order_valid = False
        self.submitting = False

    # ---------------- LIFECYCLE ----------------

    @property
    def mode(self) -> FormMode:
        if self.draft is None:
            return FormMode.IDLE
        return FormMode.EDIT if self.draft.id is not None else FormMode.CREATE

    def start_create(self, now: Optional[datetime] = None) -> InspectionRecord:
        d, t = now_form_values(now)
        self.draft = InspectionRecord(
            sales_type=SalesType.DOMESTIC.value,
            customer=DOMESTIC_CUSTOMER,
            date=d,
            time=t,
        )
        self.production_order_valid = False
        self.submitting = False
        return self.draft

    def start_edit(self, record: Union[InspectionRecord, Mapping[str, Any]]) -> InspectionRecord:
        if not isinstance(record, InspectionRecord):
            record = record_from_wire(record)
        draft = record.model_copy(deep=True)
        draft.date = to_form_date(draft.date)
        draft.time = to_form_time(draft.time)
        if draft.defects is None:
            draft.defects = []
        self.draft = draft
        self.production_order_valid = is_valid_production_order(draft.production_order)
        self.submitting = False
        logger.debug("Editing record %s", draft.id)
        return draft

    def cancel(self) -> None:
        self.draft = None
        self.production_order_valid = False
        self.submitting = False

    def _require_draft(self) -> InspectionRecord:
        if self.draft is None:
            raise FormStateError("no open form session")
        return self.draft

    # ---------------- FIELDS ----------------

    def set_field(self, name: str, value: str) -> None:
        draft = self._require_draft()
        if name not in EDITABLE_FIELDS:
            raise FormStateError(f"field '{name}' is not editable")
        value = value or ""

        if name == "sales_type":
            rule = SALES_TYPE_RULES.get(value)
            if rule is None:
                raise FormStateError(f"unknown sales type '{value}'")
            draft.sales_type = value
            rule(draft)
            return

        if name == "customer" and draft.sales_type == SalesType.DOMESTIC.value:
            # pinned while domestic
            return

        setattr(draft, name, value)
        if name == "production_order":
            self.production_order_valid = is_valid_production_order(value)

    # ---------------- DEFECTS ----------------

    def add_defect(self) -> int:
        draft = self._require_draft()
        draft.defects.append(DefectEntry())
        return len(draft.defects) - 1

    def remove_defect(self, index: int) -> None:
        draft = self._require_draft()
        if 0 <= index < len(draft.defects):
            del draft.defects[index]

    def set_defect_field(self, index: int, field: str, value: str) -> bool:
        draft = self._require_draft()
        if not 0 <= index < len(draft.defects):
            raise IndexError(f"defect index {index} out of range")
        if field not in DEFECT_CHAIN:
            raise FormStateError(f"unknown defect field '{field}'")
        value = value or ""
        if field == "defect_category" and value and value not in DEFECT_CATEGORIES:
            raise FormStateError(f"unknown defect category '{value}'")
        return apply_defect_write(draft.defects[index], field, value)

    # ---------------- FORM POSTS ----------------

    def apply_form(self, fields: Mapping[str, Optional[str]], defect_rows: Sequence[Mapping[str, Optional[str]]] = ()) -> None:
        """
        Apply one posted browser form to the draft.

        Fields missing from the post (disabled inputs) are None and skipped.
        Only changed values are written, sales type first so the customer
        rule runs before a posted customer is considered.
        """
        draft = self._require_draft()

        sales_type = fields.get("sales_type")
        if sales_type is not None and sales_type != draft.sales_type:
            self.set_field("sales_type", sales_type)

        for name in EDITABLE_FIELDS:
            if name == "sales_type":
                continue
            value = fields.get(name)
            if value is None or value == getattr(draft, name):
                continue
            self.set_field(name, value)

        for index, row in enumerate(defect_rows):
            if index >= len(draft.defects):
                break
            entry = draft.defects[index]
            for field in DEFECT_CHAIN:
                value = row.get(field)
                if value is None or value == getattr(entry, field):
                    continue
                self.set_defect_field(index, field, value)
                # posted values further down the chain are stale now
                break

    # ---------------- VALIDATION / SUBMIT ----------------

    def validation_messages(self) -> Dict[str, str]:
        if self.draft is None:
            return {}
        draft = self.draft
        messages: Dict[str, str] = {}
        if draft.sales_type == SalesType.EXPORT.value and not draft.customer.strip():
            messages["customer"] = CUSTOMER_REQUIRED_MESSAGE
        if not is_valid_production_order(draft.production_order):
            messages["production_order"] = PRODUCTION_ORDER_MESSAGE
        for name, msg in REQUIRED_MESSAGES.items():
            if not getattr(draft, name).strip():
                messages[name] = msg
        return messages

    def is_submittable(self) -> bool:
        return self.draft is not None and not self.validation_messages()

    def to_submission_payload(self) -> Dict[str, Any]:
        draft = self._require_draft()
        payload = record_to_wire(draft)
        payload["defects"] = [defect_to_wire(d) for d in draft.defects if d.defect_category]
        return payload

    def begin_submit(self) -> bool:
        self._require_draft()
        if self.submitting:
            return False
        self.submitting = True
        return True

    def finish_submit(self, success: bool, draft: Optional[InspectionRecord] = None) -> None:
        """
        End a submit. ``draft`` is the draft that was sent; when the form has
        been restarted meanwhile the newer draft is left alone.
        """
        if draft is not None and draft is not self.draft:
            return
        self.submitting = False
        if success:
            self.cancel()

