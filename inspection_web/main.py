from __future__ import annotations

import html
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, Request, Depends
from fastapi.responses import RedirectResponse, HTMLResponse, FileResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from inspection_web import config
from inspection_web.api_client import ItemsApiClient
from inspection_web.errors import ItemsApiError
from inspection_web.export import build_workbook
from inspection_web.form_state import EDITABLE_FIELDS, FormMode, InspectionFormManager
from inspection_web.formatting import display_date, display_time
from inspection_web.log_config import setup_logging
from inspection_web.models import DEFECT_CATEGORIES, SALES_TYPE_LABELS, InspectionRecord
from inspection_web.sessions import FormSessionStore

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Items API at %s", config.API_BASE_URL)
    yield


app = FastAPI(lifespan=lifespan)
app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))
templates.env.filters["display_date"] = display_date
templates.env.filters["display_time"] = display_time

form_store = FormSessionStore(config.SESSION_SECRET)

NOTICES = {
    "created": "新增成功，已新增一筆資料！",
    "updated": "更新成功，資料已更新！",
    "deleted": "刪除成功，資料已刪除！",
    "not_found": "找不到該筆資料",
    "delete_failed": "刪除失敗，請稍後再試",
}

# form input names for defect row i
DEFECT_INPUTS = {
    "defect_category": "defect-{i}-category",
    "defect_status": "defect-{i}-status",
    "countermeasure": "defect-{i}-countermeasure",
}


def get_items_api() -> ItemsApiClient:
    return ItemsApiClient(config.API_BASE_URL, timeout=config.API_TIMEOUT_S)


def get_form_store() -> FormSessionStore:
    return form_store


def get_form_session(request: Request, store: FormSessionStore) -> Tuple[InspectionFormManager, str]:
    return store.get_or_create(request.cookies.get(config.SESSION_COOKIE))


def open_form_session(request: Request, store: FormSessionStore) -> Optional[InspectionFormManager]:
    manager = store.get(request.cookies.get(config.SESSION_COOKIE))
    if manager is None or manager.mode == FormMode.IDLE:
        return None
    return manager


def close_form_session(request: Request, store: FormSessionStore, location: str = "/") -> Response:
    """Drop the closed form's manager and its cookie."""
    store.discard(request.cookies.get(config.SESSION_COOKIE))
    resp = RedirectResponse(location, status_code=302)
    resp.delete_cookie(config.SESSION_COOKIE)
    return resp


def with_session_cookie(resp: Response, cookie: str) -> Response:
    resp.set_cookie(config.SESSION_COOKIE, cookie, httponly=True, samesite="lax")
    return resp


def filter_records(records: List[InspectionRecord], q: str) -> List[InspectionRecord]:
    q = (q or "").strip().lower()
    if not q:
        return records
    return [
        r for r in records
        if q in r.production_order.lower() or q in r.customer.lower() or q in r.inspector.lower()
    ]


def parse_posted_form(form) -> Tuple[Dict[str, Optional[str]], List[Dict[str, Optional[str]]]]:
    """Posted form -> (top-level fields, defect rows). Missing inputs are None."""
    fields = {name: form.get(name) for name in EDITABLE_FIELDS}
    try:
        count = int(form.get("defect_count") or 0)
    except ValueError:
        count = 0
    rows = []
    for i in range(max(count, 0)):
        rows.append({field: form.get(tpl.format(i=i)) for field, tpl in DEFECT_INPUTS.items()})
    return fields, rows


def render_form(request: Request, manager: InspectionFormManager, error: Optional[str] = None,
                show_validation: bool = False, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "form.html",
        {
            "draft": manager.draft,
            "mode": manager.mode.value,
            "submitting": manager.submitting,
            "production_order_valid": manager.production_order_valid,
            "messages": manager.validation_messages(),
            "show_validation": show_validation,
            "sales_types": SALES_TYPE_LABELS,
            "categories": DEFECT_CATEGORIES,
            "error": error,
        },
        status_code=status_code,
    )


# ---------------- RECORD LIST ----------------

@app.get("/", response_class=HTMLResponse)
def index(request: Request, q: str = "", notice: str = "", api: ItemsApiClient = Depends(get_items_api)):
    error = None
    try:
        records = api.list_items()
    except ItemsApiError as exc:
        records = []
        error = f"無法取得資料：{exc.message}"

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "records": filter_records(records, q),
            "total": len(records),
            "q": q,
            "notice": NOTICES.get(notice),
            "error": error,
            "sales_types": SALES_TYPE_LABELS,
        },
    )

# ---------------- FORM SESSION ----------------

@app.get("/records/new")
def record_new(request: Request, store: FormSessionStore = Depends(get_form_store)):
    manager, cookie = get_form_session(request, store)
    manager.start_create()
    return with_session_cookie(RedirectResponse("/form", status_code=302), cookie)


@app.get("/records/{item_id}/edit")
def record_edit(request: Request, item_id: str, api: ItemsApiClient = Depends(get_items_api),
                store: FormSessionStore = Depends(get_form_store)):
    try:
        record = api.get_item(item_id)
    except ItemsApiError as exc:
        logger.warning("Could not load record %s: %s", item_id, exc)
        return RedirectResponse("/?notice=not_found", status_code=302)
    if record is None:
        return RedirectResponse("/?notice=not_found", status_code=302)

    manager, cookie = get_form_session(request, store)
    manager.start_edit(record)
    return with_session_cookie(RedirectResponse("/form", status_code=302), cookie)


@app.get("/form", response_class=HTMLResponse)
def form_get(request: Request, store: FormSessionStore = Depends(get_form_store)):
    manager = open_form_session(request, store)
    if manager is None:
        return RedirectResponse("/", status_code=302)
    return render_form(request, manager)


@app.post("/form")
async def form_post(request: Request, api: ItemsApiClient = Depends(get_items_api),
                    store: FormSessionStore = Depends(get_form_store)):
    manager = open_form_session(request, store)
    if manager is None:
        return RedirectResponse("/", status_code=302)

    form = await request.form()
    action = (form.get("action") or "refresh").strip()

    if action == "cancel":
        manager.cancel()
        return close_form_session(request, store)

    fields, rows = parse_posted_form(form)
    manager.apply_form(fields, rows)

    if action == "add_defect":
        manager.add_defect()
    elif action.startswith("remove_defect:"):
        idx = action.split(":", 1)[1]
        if idx.isdigit():
            manager.remove_defect(int(idx))

    if action != "submit":
        return RedirectResponse("/form", status_code=302)

    # ---------------- SUBMIT ----------------

    if not manager.is_submittable():
        return render_form(request, manager, show_validation=True)

    if not manager.begin_submit():
        return render_form(request, manager, error="資料送出中，請稍候")

    draft = manager.draft
    editing = manager.mode == FormMode.EDIT
    payload = manager.to_submission_payload()
    try:
        if editing:
            await run_in_threadpool(api.update_item, draft.id, payload)
        else:
            await run_in_threadpool(api.create_item, payload)
    except ItemsApiError as exc:
        manager.finish_submit(False, draft)
        return render_form(request, manager, error=f"儲存失敗：{exc.message}")

    manager.finish_submit(True, draft)
    logger.info("%s record %s", "Updated" if editing else "Created", draft.id or payload.get("productionOrder"))
    notice = "updated" if editing else "created"
    if manager.mode != FormMode.IDLE:
        # a new form was opened while this one was being saved
        return RedirectResponse(f"/?notice={notice}", status_code=302)
    return close_form_session(request, store, f"/?notice={notice}")

# ---------------- DELETE ----------------

@app.post("/records/{item_id}/delete")
def record_delete(item_id: str, api: ItemsApiClient = Depends(get_items_api)):
    try:
        api.delete_item(item_id)
    except ItemsApiError as exc:
        logger.warning("Delete of %s failed: %s", item_id, exc)
        return RedirectResponse("/?notice=delete_failed", status_code=302)
    logger.info("Deleted record %s", item_id)
    return RedirectResponse("/?notice=deleted", status_code=302)

# ---------------- EXPORT XLSX ----------------

@app.get("/export-xlsx")
def export_xlsx(q: str = "", api: ItemsApiClient = Depends(get_items_api)):
    try:
        records = api.list_items()
    except ItemsApiError as exc:
        return HTMLResponse(f"無法取得資料：<b>{html.escape(exc.message)}</b>", status_code=502)

    wb = build_workbook(filter_records(records, q))

    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".xlsx")
    tmp_path = tmp.name
    tmp.close()
    wb.save(tmp_path)

    filename = f"inspection_records_{datetime.now().strftime('%Y%m%d_%H%M')}.xlsx"
    return FileResponse(
        tmp_path,
        filename=filename,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        background=BackgroundTask(os.remove, tmp_path),
    )
