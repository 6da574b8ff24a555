# inspection_web/config.py
from __future__ import annotations

import os


# Remote REST API serving /items
API_BASE_URL = os.getenv("INSPECTION_API_URL", "http://localhost:5000/api").rstrip("/")
API_TIMEOUT_S = float(os.getenv("INSPECTION_API_TIMEOUT", "10"))

SESSION_SECRET = os.getenv("SESSION_SECRET", "CHANGE_ME_RANDOM")
SESSION_COOKIE = "inspection_form"

# Per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_LEVEL_HTTP = os.getenv("LOG_LEVEL_HTTP", "WARNING")        # httpx / httpcore
LOG_LEVEL_UVICORN = os.getenv("LOG_LEVEL_UVICORN", "INFO")     # uvicorn.access / uvicorn.error
LOG_LEVEL_API = os.getenv("LOG_LEVEL_API", "INFO")             # items API client
