# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from authgate.auth.session import COOKIE_NAME, SessionManager, cookie_settings
from authgate.auth.users import YamlCredentialStore
from authgate.domain import AuthContext, Role
from authgate.exceptions import DuplicateEmailError, StoreError, ValidationError
from authgate.permissions import require_anonymous, require_any_role, require_role, require_user
from authgate.services.account_service import login, logout, register

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

UNAVAILABLE_MESSAGE = "Service temporarily unavailable, please try again later."

app = FastAPI()
app.state.store = YamlCredentialStore()
app.state.sessions = SessionManager.from_env(app.state.store)


@app.exception_handler(StoreError)
async def _store_error_handler(request: Request, exc: StoreError):
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return PlainTextResponse(UNAVAILABLE_MESSAGE, status_code=503)


def _render(request: Request, template_name: str, ctx: dict, *, auth: AuthContext, status_code: int = 200):
    """TemplateResponse wrapper injecting the current user."""
    base_ctx = {"current_user": auth.identity}
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


# ------------------ Routes ------------------


@app.get("/", response_class=HTMLResponse)
def home(request: Request, auth: AuthContext = Depends(require_user)):
    return _render(request, "index.html", {"name": auth.identity.name}, auth=auth)


@app.get("/login", response_class=HTMLResponse)
def login_get(request: Request, auth: AuthContext = Depends(require_anonymous)):
    return _render(request, "login.html", {"email": "", "error": ""}, auth=auth)


@app.post("/login")
def login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    auth: AuthContext = Depends(require_anonymous),
):
    outcome = login(
        request.app.state.store,
        request.app.state.sessions,
        email,
        password,
        previous=request.cookies.get(COOKIE_NAME),
    )
    if not outcome.ok:
        return _render(request, "login.html", {"email": email, "error": outcome.error}, auth=auth)
    resp = RedirectResponse(url=outcome.target, status_code=303)
    resp.set_cookie(
        COOKIE_NAME,
        outcome.session,
        max_age=request.app.state.sessions.max_age,
        **cookie_settings(),
    )
    return resp


@app.get("/register", response_class=HTMLResponse)
def register_get(request: Request, auth: AuthContext = Depends(require_anonymous)):
    return _render(request, "register.html", {"name": "", "email": "", "errors": []}, auth=auth)


@app.post("/register")
def register_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    auth: AuthContext = Depends(require_anonymous),
):
    # Self-registration always yields a guest; a submitted "role" field is ignored.
    ctx = {"name": name, "email": email}
    try:
        register(request.app.state.store, name=name, email=email, password=password)
    except ValidationError as e:
        return _render(request, "register.html", {**ctx, "errors": e.errors}, auth=auth, status_code=400)
    except DuplicateEmailError:
        return _render(
            request, "register.html", {**ctx, "errors": ["Email already registered"]}, auth=auth, status_code=409
        )
    return RedirectResponse(url="/login", status_code=303)


@app.api_route("/logout", methods=["POST", "DELETE"])
def logout_route(request: Request):
    try:
        target = logout(request.app.state.sessions, request.cookies.get(COOKIE_NAME))
    except StoreError as e:
        # The cookie is dropped even when the backend could not forget the session.
        logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=e)
        resp = PlainTextResponse(UNAVAILABLE_MESSAGE, status_code=503)
        resp.delete_cookie(COOKIE_NAME)
        return resp
    resp = RedirectResponse(url=target, status_code=303)
    resp.delete_cookie(COOKIE_NAME)
    return resp


@app.get("/admin", response_class=HTMLResponse)
def admin_area(request: Request, auth: AuthContext = Depends(require_role(Role.ADMIN))):
    return _render(request, "area.html", {"area": "Admin", "name": auth.identity.name}, auth=auth)


@app.get("/staff", response_class=HTMLResponse)
def staff_area(request: Request, auth: AuthContext = Depends(require_any_role(Role.ADMIN, Role.STAFF))):
    return _render(request, "area.html", {"area": "Staff", "name": auth.identity.name}, auth=auth)
