# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from authgate.auth.authenticator import authenticate
from authgate.auth.passwords import hash_password
from authgate.auth.session import SessionManager
from authgate.auth.users import CredentialStore
from authgate.domain import DEFAULT_ROLE, Authenticated, Identity, Role, landing_for, normalize_email
from authgate.exceptions import ValidationError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
LOGIN_FAILED_MESSAGE = "Invalid email or password"
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class LoginOutcome:
    """Result of a login attempt: a redirect target plus session, or an error."""

    target: str = LOGIN_PATH
    session: Optional[str] = None
    identity: Optional[Identity] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.session is not None


def validate_registration(name: str, email: str, password: str) -> List[str]:
    errors: List[str] = []
    if not str(name or "").strip():
        errors.append("Name is required")
    e = normalize_email(email)
    if not e:
        errors.append("Email is required")
    elif "@" not in e.strip("@"):
        errors.append("Email is not valid")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return errors


def register(
    store: CredentialStore,
    *,
    name: str,
    email: str,
    password: str,
    role: Role = DEFAULT_ROLE,
) -> Identity:
    """Create a new identity with a freshly hashed password.

    Raises :class:`ValidationError` before touching the store, and lets
    :class:`DuplicateEmailError` / :class:`StoreError` propagate from it.
    """
    errors = validate_registration(name, email, password)
    if errors:
        raise ValidationError(errors)
    record = store.create(
        name=str(name).strip(),
        email=email,
        password_hash=hash_password(password),
        role=Role.parse(role),
    )
    return record.identity()


def login(
    store: CredentialStore,
    sessions: SessionManager,
    email: str,
    password: str,
    previous: Optional[str] = None,
) -> LoginOutcome:
    result = authenticate(store, email, password)
    if not isinstance(result, Authenticated):
        # Same message whatever the reason, so account existence is not revealed.
        return LoginOutcome(error=LOGIN_FAILED_MESSAGE)
    identity = result.identity
    ref = sessions.establish(identity, previous=previous)
    logger.info("Identity %s logged in", identity.id)
    return LoginOutcome(target=landing_for(identity.role), session=ref, identity=identity)


def logout(sessions: SessionManager, reference: Optional[str]) -> str:
    sessions.destroy(reference)
    logger.info("Session closed")
    return LOGIN_PATH
