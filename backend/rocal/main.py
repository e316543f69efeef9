from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.sessions import SessionMiddleware

from rocal.core.auth import guard_redirect, is_public_path, read_session_cookie, sync_session_cookie
from rocal.core.config import settings
from rocal.core.security import hash_password, is_password_too_long
from rocal.db.base import Base
from rocal.db.session import SessionLocal, engine
from rocal.models import User
from rocal.repositories import users as users_repo
from rocal.services.auth_providers import build_session_provider
from rocal.services.session import SessionManager
from rocal.services.store import build_record_store
from rocal.ui import routes as ui_routes
from rocal.ui import routes_auth

UI_SESSION_COOKIE = "rocal_ui"

logger = logging.getLogger("rocal")
request_logger = logging.getLogger("rocal.request")


def configure_app_logging() -> None:
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    if not any(isinstance(handler, logging.StreamHandler) and handler.stream is sys.stdout for handler in logger.handlers):
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        logger.addHandler(stream_handler)

    logger.propagate = True


def _guard_response(request: Request, target: str):
    if request.headers.get("HX-Request"):
        response = HTMLResponse("Login required", status_code=401)
        response.headers["HX-Redirect"] = target
        return response
    return RedirectResponse(target, status_code=302)


def create_app() -> FastAPI:
    configure_app_logging()
    docs_url = "/docs" if settings.dev_mode else None
    openapi_url = "/openapi.json" if settings.dev_mode else None
    app = FastAPI(
        title="Rocal Admin",
        version="0.1.0",
        docs_url=docs_url,
        openapi_url=openapi_url,
        redoc_url=None,
    )
    app.state.session_provider_factory = build_session_provider
    app.state.record_store_factory = build_record_store

    app.include_router(routes_auth.router)
    app.include_router(ui_routes.router)

    static_dir = Path(__file__).resolve().parent / "static"
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    @app.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.middleware("http")
    async def session_guard_middleware(request: Request, call_next):
        request.state.user = None
        request.state.session_manager = None
        path = request.url.path
        if is_public_path(path):
            return await call_next(request)

        existing = read_session_cookie(request)
        manager = SessionManager(app.state.session_provider_factory())
        try:
            request.state.user = await run_in_threadpool(manager.start, existing)
            request.state.session_manager = manager

            target = guard_redirect(path, request.state.user)
            if target is not None:
                response = _guard_response(request, target)
            else:
                response = await call_next(request)
            sync_session_cookie(response, existing, manager.session)
            return response
        finally:
            manager.stop()

    @app.middleware("http")
    async def ui_exception_middleware(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled UI exception for %s", request.url.path)
            return HTMLResponse(
                content=(
                    "<!doctype html><html lang='en'><head><meta charset='utf-8'>"
                    "<title>Rocal Error</title></head><body>"
                    "<h1>Rocal Error</h1>"
                    "<p>The page could not be rendered due to an internal error.</p>"
                    f"<p><strong>{type(exc).__name__}</strong></p>"
                    "<p><a href='/dashboard'>Back to the dashboard</a></p>"
                    "</body></html>"
                ),
                status_code=500,
            )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        started_at = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started_at) * 1000
            request_logger.info(
                "%s %s -> %s (%.2f ms)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
            return response
        except Exception:
            elapsed_ms = (time.perf_counter() - started_at) * 1000
            request_logger.exception(
                "%s %s -> 500 (%.2f ms)",
                request.method,
                request.url.path,
                elapsed_ms,
            )
            raise

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.required_secret_key,
        session_cookie=UI_SESSION_COOKIE,
        same_site="lax",
        https_only=settings.session_cookie_secure,
    )

    return app


def seed_admin_user(db: Session) -> User | None:
    if users_repo.count_users(db) != 0:
        return None

    admin_username = settings.admin_username
    admin_password = settings.admin_password

    if settings.dev_mode:
        username = admin_username or "admin"
        password = admin_password or "admin123"
    else:
        if not admin_username and not admin_password:
            return None
        if not admin_username:
            raise RuntimeError("ADMIN_USERNAME must be set to seed admin when DEV_MODE=false.")
        if not admin_password:
            raise RuntimeError("ADMIN_PASSWORD must be set to seed admin when DEV_MODE=false.")
        username = admin_username
        password = admin_password

    if is_password_too_long(password):
        raise RuntimeError(
            "ADMIN_PASSWORD too long for bcrypt (max 72 bytes). Use a shorter password."
        )

    user = users_repo.create_user(
        db,
        User(username=username, password_hash=hash_password(password), is_active=True),
    )
    logger.info("Created admin user: %s", username)
    return user


def prepare_local_database() -> None:
    if engine.url.get_backend_name() == "sqlite" and engine.url.database:
        Path(engine.url.database).parent.mkdir(parents=True, exist_ok=True)
    if settings.dev_mode:
        Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_admin_user(db)


app = create_app()


@app.on_event("startup")
def on_startup() -> None:
    if settings.store_backend == "sql":
        prepare_local_database()
