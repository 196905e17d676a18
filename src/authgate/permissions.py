# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""FastAPI dependencies applying the access guard to routes."""

from __future__ import annotations

from typing import NoReturn

from fastapi import Depends, HTTPException, Request

from authgate import guard
from authgate.auth.session import COOKIE_NAME, SessionManager
from authgate.domain import AuthContext, Role, landing_for
from authgate.services.account_service import LOGIN_PATH


def _redirect(location: str) -> NoReturn:
    raise HTTPException(status_code=303, headers={"Location": location})


def auth_context(request: Request) -> AuthContext:
    sessions: SessionManager = request.app.state.sessions
    return sessions.context(request.cookies.get(COOKIE_NAME))


def require_user(auth: AuthContext = Depends(auth_context)) -> AuthContext:
    if not guard.require_authenticated(auth.is_authenticated).allowed:
        _redirect(LOGIN_PATH)
    return auth


def require_anonymous(auth: AuthContext = Depends(auth_context)) -> AuthContext:
    if not guard.require_not_authenticated(auth.is_authenticated).allowed:
        _redirect(landing_for(auth.identity.role))
    return auth


def require_role(role: Role):
    def _dep(auth: AuthContext = Depends(auth_context)) -> AuthContext:
        if not guard.require_role(auth.is_authenticated, auth.identity, role).allowed:
            _redirect(LOGIN_PATH)
        return auth

    return _dep


def require_any_role(*roles: Role):
    allowed = frozenset(roles)

    def _dep(auth: AuthContext = Depends(auth_context)) -> AuthContext:
        if not guard.require_any_role(auth.is_authenticated, auth.identity, allowed).allowed:
            _redirect(LOGIN_PATH)
        return auth

    return _dep
