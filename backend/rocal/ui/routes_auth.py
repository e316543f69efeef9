from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from rocal.core.auth import DASHBOARD_PATH, LOGIN_PATH, get_session_manager
from rocal.services.notifications import Notification
from rocal.services.session import SessionManager
from rocal.ui.utils import flash, pop_notifications

router = APIRouter(tags=["ui"])

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _render_login(request: Request, error: str = "", email: str = "", status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {
            "error": error,
            "email": email,
            "notifications": pop_notifications(request),
        },
        status_code=status_code,
    )


@router.get("/login", response_class=HTMLResponse, response_model=None)
def login_form(request: Request):
    return _render_login(request)


@router.post("/login", response_model=None)
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    manager: SessionManager = Depends(get_session_manager),
):
    result = manager.login(email, password)
    if not result.success:
        return _render_login(
            request,
            error=result.error or "Invalid credentials.",
            email=email,
            status_code=401,
        )
    flash(request, [Notification("Welcome!", "You have signed in successfully.")])
    return RedirectResponse(url=DASHBOARD_PATH, status_code=303)


@router.post("/logout", response_model=None)
def logout(request: Request, manager: SessionManager = Depends(get_session_manager)):
    manager.logout()
    request.session.clear()
    return RedirectResponse(url=LOGIN_PATH, status_code=303)
