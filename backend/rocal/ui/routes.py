from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from rocal.core.auth import DASHBOARD_PATH, get_current_identity, get_session_manager
from rocal.services.dashboard import FILTER_FIELDS, DashboardController, DashboardState
from rocal.services.listing import PendingDeletion
from rocal.services.notifications import Notifier
from rocal.services.record_kinds import KIND_CONFIGS, parse_kind
from rocal.services.session import SessionManager
from rocal.ui.utils import flash, format_date, format_money, pop_notifications

router = APIRouter(tags=["ui"])

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
STATE_KEY = "dashboard"


def get_dashboard(
    request: Request,
    manager: SessionManager = Depends(get_session_manager),
) -> Iterator[DashboardController]:
    access_token = manager.session.access_token if manager.session else None
    store = request.app.state.record_store_factory(access_token)
    state = DashboardState.from_session(request.session.get(STATE_KEY))
    controller = DashboardController(store, manager, Notifier(), state)
    try:
        yield controller
    finally:
        controller.close()


async def get_form_values(request: Request) -> dict[str, str]:
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _save_state(request: Request, controller: DashboardController) -> None:
    request.session[STATE_KEY] = controller.state.to_session()


def _redirect_to_dashboard(request: Request, controller: DashboardController) -> RedirectResponse:
    _save_state(request, controller)
    flash(request, controller.notifier.drain())
    return RedirectResponse(url=DASHBOARD_PATH, status_code=303)


def _select_posted_tab(controller: DashboardController, values: dict[str, str]) -> None:
    tab = values.get("tab")
    if tab:
        controller.select_tab(parse_kind(tab, default=controller.active_tab))


def _pending_deletion(controller: DashboardController, record_id: str) -> PendingDeletion | None:
    record = controller.find_record(record_id)
    if record is None:
        controller.notifier.error("Error", "Record not found.")
        return None
    return PendingDeletion(record_id=record.id, name=record.name)


def _render_dashboard(
    request: Request,
    controller: DashboardController,
    pending_delete: PendingDeletion | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    _save_state(request, controller)
    notifications = pop_notifications(request) + controller.notifier.drain()
    record_list = controller.record_list()
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "identity": get_current_identity(request),
            "kinds": list(KIND_CONFIGS.values()),
            "active": controller.active_config,
            "filters": controller.active_filter,
            "stats": controller.aggregates(),
            "list_state": record_list.state,
            "rows": record_list.rows(),
            "form": controller.form,
            "pending_delete": pending_delete,
            "notifications": notifications,
            "format_date": format_date,
            "format_money": format_money,
        },
        status_code=status_code,
    )


@router.get("/", include_in_schema=False)
def index() -> RedirectResponse:
    return RedirectResponse(url=DASHBOARD_PATH, status_code=302)


@router.get("/dashboard", response_class=HTMLResponse, response_model=None)
def dashboard_page(
    request: Request,
    tab: str | None = None,
    new: bool = False,
    edit: str | None = None,
    confirm_delete: str | None = None,
    controller: DashboardController = Depends(get_dashboard),
):
    if tab:
        controller.select_tab(parse_kind(tab, default=controller.active_tab))
    if new:
        controller.open_form()
    elif edit:
        controller.open_form(edit)
    pending_delete = None
    if confirm_delete:
        pending_delete = _pending_deletion(controller, confirm_delete)
    return _render_dashboard(request, controller, pending_delete=pending_delete)


@router.post("/dashboard/filters", response_model=None)
def update_filters(
    request: Request,
    values: dict[str, str] = Depends(get_form_values),
    controller: DashboardController = Depends(get_dashboard),
):
    _select_posted_tab(controller, values)
    controller.update_filters({name: values.get(name, "") for name in FILTER_FIELDS})
    return _redirect_to_dashboard(request, controller)


@router.post("/dashboard/filters/clear", response_model=None)
def clear_filters(
    request: Request,
    values: dict[str, str] = Depends(get_form_values),
    controller: DashboardController = Depends(get_dashboard),
):
    _select_posted_tab(controller, values)
    controller.clear_filters()
    return _redirect_to_dashboard(request, controller)


@router.post("/dashboard/records", response_model=None)
def create_record(
    request: Request,
    values: dict[str, str] = Depends(get_form_values),
    controller: DashboardController = Depends(get_dashboard),
):
    _select_posted_tab(controller, values)
    form = controller.open_form()
    form.update(values)
    if not form.submit():
        return _render_dashboard(request, controller, status_code=400)
    return _redirect_to_dashboard(request, controller)


@router.post("/dashboard/records/{record_id}", response_model=None)
def update_record(
    record_id: str,
    request: Request,
    values: dict[str, str] = Depends(get_form_values),
    controller: DashboardController = Depends(get_dashboard),
):
    _select_posted_tab(controller, values)
    form = controller.open_form(record_id)
    if form is None:
        return _redirect_to_dashboard(request, controller)
    form.update(values)
    if not form.submit():
        return _render_dashboard(request, controller, status_code=400)
    return _redirect_to_dashboard(request, controller)


@router.post("/dashboard/records/{record_id}/delete", response_model=None)
def delete_record(
    record_id: str,
    request: Request,
    values: dict[str, str] = Depends(get_form_values),
    controller: DashboardController = Depends(get_dashboard),
):
    _select_posted_tab(controller, values)
    pending = _pending_deletion(controller, record_id)
    if pending is not None and values.get("confirm") == "yes":
        controller.delete(pending.record_id)
    return _redirect_to_dashboard(request, controller)


@router.post("/notifications/dismiss", response_model=None)
def dismiss_notifications(request: Request):
    pop_notifications(request)
    return RedirectResponse(url=DASHBOARD_PATH, status_code=303)
