# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Access decisions over (authenticated, identity, required roles).

These functions never raise and never touch request state; callers decide
what a ``DENY`` means (usually a redirect to the login page).
"""

from __future__ import annotations

from enum import Enum
from typing import AbstractSet, Optional

from authgate.domain import Identity, Role


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW


def _decide(ok: bool) -> Decision:
    return Decision.ALLOW if ok else Decision.DENY


def require_authenticated(authenticated: bool) -> Decision:
    return _decide(bool(authenticated))


def require_not_authenticated(authenticated: bool) -> Decision:
    return _decide(not authenticated)


def require_role(authenticated: bool, identity: Optional[Identity], role: Role) -> Decision:
    return _decide(bool(authenticated) and identity is not None and identity.role == role)


def require_any_role(
    authenticated: bool, identity: Optional[Identity], roles: AbstractSet[Role]
) -> Decision:
    return _decide(bool(authenticated) and identity is not None and identity.role in roles)
