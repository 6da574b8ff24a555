# inspection_web/formatting.py
from __future__ import annotations

from datetime import datetime, date, time as dtime
from typing import Optional, Tuple

FORM_DATE = "%Y-%m-%d"
FORM_TIME = "%H:%M"
DISPLAY_DATE = "%Y/%m/%d"   # zh-TW locale style


def _parse_date(value: str) -> Optional[date]:
    value = (value or "").strip()
    if not value:
        return None
    try:
        # "2025-06-01", "2025-06-01T00:00:00.000Z", "2025-06-01 08:30:00"
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(value[:10], "%Y/%m/%d").date()
    except ValueError:
        return None


def _parse_time(value: str) -> Optional[dtime]:
    value = (value or "").strip()
    if not value:
        return None
    if "T" in value:
        # full ISO timestamp: keep the clock part as written
        value = value.split("T", 1)[1]
    for fmt, width in (("%H:%M:%S", 8), ("%H:%M", 5)):
        try:
            return datetime.strptime(value[:width], fmt).time()
        except ValueError:
            continue
    return None


def to_form_date(value: str) -> str:
    """Wire date -> "YYYY-MM-DD" for <input type=date>. Unparseable input is kept as-is."""
    d = _parse_date(value)
    return d.strftime(FORM_DATE) if d else (value or "")


def to_form_time(value: str) -> str:
    """Wire time -> "HH:MM" for <input type=time>. Unparseable input is kept as-is."""
    t = _parse_time(value)
    return t.strftime(FORM_TIME) if t else (value or "")


def display_date(value: str) -> str:
    d = _parse_date(value)
    return d.strftime(DISPLAY_DATE) if d else (value or "")


def display_time(value: str) -> str:
    t = _parse_time(value)
    return t.strftime(FORM_TIME) if t else (value or "")


def now_form_values(now: Optional[datetime] = None) -> Tuple[str, str]:
    now = now or datetime.now()
    return now.strftime(FORM_DATE), now.strftime(FORM_TIME)
