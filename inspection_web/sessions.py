# inspection_web/sessions.py
from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional, Tuple

from itsdangerous import BadSignature, URLSafeSerializer

from inspection_web.form_state import InspectionFormManager


class FormSessionStore:
    """
    One InspectionFormManager per browser with an open form.
    The browser only holds a signed session id; drafts live in memory,
    are dropped once the form closes and are gone after a restart.
    """

    def __init__(self, secret: str):
        self._ser = URLSafeSerializer(secret, salt="form-session")
        self._managers: Dict[str, InspectionFormManager] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._managers)

    def _session_id(self, cookie: Optional[str]) -> Optional[str]:
        if not cookie:
            return None
        try:
            data = self._ser.loads(cookie)
        except BadSignature:
            return None
        sid = data.get("sid") if isinstance(data, dict) else None
        return sid if isinstance(sid, str) else None

    def get(self, cookie: Optional[str]) -> Optional[InspectionFormManager]:
        """Existing manager for this cookie, never creates one."""
        sid = self._session_id(cookie)
        if sid is None:
            return None
        with self._lock:
            return self._managers.get(sid)

    def get_or_create(self, cookie: Optional[str]) -> Tuple[InspectionFormManager, str]:
        """Returns (manager, cookie value to set). Only for opening a form."""
        sid = self._session_id(cookie)
        with self._lock:
            if sid is None or sid not in self._managers:
                sid = sid or uuid.uuid4().hex
                self._managers[sid] = InspectionFormManager()
            return self._managers[sid], self._ser.dumps({"sid": sid})

    def discard(self, cookie: Optional[str]) -> None:
        """Drop the manager of a closed form."""
        sid = self._session_id(cookie)
        if sid is None:
            return
        with self._lock:
            self._managers.pop(sid, None)

    def clear(self) -> None:
        with self._lock:
            self._managers.clear()
