# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Core domain values: roles, identities and authentication results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    GUEST = "guest"

    @classmethod
    def parse(cls, value: object) -> "Role":
        """Return the role named by ``value``; anything unrecognised is ``GUEST``."""
        if isinstance(value, Role):
            return value
        v = str(value or "").strip().lower()
        for role in cls:
            if role.value == v:
                return role
        return cls.GUEST


DEFAULT_ROLE = Role.GUEST


def normalize_email(email: str) -> str:
    """Emails are compared trimmed and lower-cased."""
    return str(email or "").strip().lower()


@dataclass(frozen=True)
class Identity:
    id: str
    name: str
    email: str
    role: Role = DEFAULT_ROLE


@dataclass(frozen=True)
class UserRecord:
    """Stored form of an identity. Only the store and authenticator see it."""

    id: str
    name: str
    email: str
    role: Role
    password_hash: str

    def identity(self) -> Identity:
        return Identity(id=self.id, name=self.name, email=self.email, role=self.role)


class RejectReason(str, Enum):
    NO_SUCH_USER = "no-such-user"
    BAD_PASSWORD = "bad-password"


@dataclass(frozen=True)
class Authenticated:
    identity: Identity

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason

    @property
    def ok(self) -> bool:
        return False


AuthResult = Union[Authenticated, Rejected]


@dataclass(frozen=True)
class AuthContext:
    """Per-request authentication state handed to guards and handlers."""

    identity: Optional[Identity] = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None


ANONYMOUS = AuthContext()


# --- Landing pages after login (role -> path) ---
DEFAULT_LANDING = "/"
LANDING: dict[Role, str] = {
    Role.ADMIN: "/admin",
    Role.STAFF: "/staff",
}


def landing_for(role: Role) -> str:
    """Destination after a successful login for the given role."""
    return LANDING.get(role, DEFAULT_LANDING)
