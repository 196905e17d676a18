# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import secrets
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from authgate.auth.backends import SessionBackend, backend_from_env
from authgate.auth.users import CredentialStore
from authgate.domain import ANONYMOUS, AuthContext, Identity
from authgate.exceptions import SessionInvalid

logger = logging.getLogger(__name__)

COOKIE_NAME = os.getenv("AUTHGATE_COOKIE_NAME", "authgate_session")
DEFAULT_MAX_AGE_SECONDS = int(os.getenv("AUTHGATE_SESSION_MAX_AGE", "28800"))  # 8 hours


def _serializer(secret: Optional[str] = None, salt: Optional[str] = None) -> URLSafeTimedSerializer:
    secret = secret or os.getenv("AUTHGATE_SECRET_KEY") or os.getenv("SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing AUTHGATE_SECRET_KEY (or SECRET_KEY) in environment")
    salt = salt or os.getenv("AUTHGATE_SESSION_SALT", "authgate.session.v1")
    return URLSafeTimedSerializer(secret_key=secret, salt=salt)


class SessionManager:
    """Server-side sessions referenced by a signed cookie value.

    The cookie carries only a random session id, signed and timestamped. The
    backend maps that id to an identity id, and every resolution re-reads the
    identity from the credential store so role changes apply immediately.
    """

    def __init__(
        self,
        store: CredentialStore,
        backend: SessionBackend,
        *,
        secret: Optional[str] = None,
        salt: Optional[str] = None,
        max_age: int = DEFAULT_MAX_AGE_SECONDS,
    ) -> None:
        self.store = store
        self.backend = backend
        self.max_age = max_age
        self._s = _serializer(secret, salt)

    @classmethod
    def from_env(cls, store: CredentialStore) -> "SessionManager":
        return cls(store, backend_from_env())

    def _session_id(self, reference: str) -> str:
        if not reference:
            raise SessionInvalid("No session reference")
        try:
            data = self._s.loads(reference, max_age=self.max_age)
        except BadData as e:
            raise SessionInvalid("Bad or expired session reference") from e
        sid = str(data.get("sid") or "").strip() if isinstance(data, dict) else ""
        if not sid:
            raise SessionInvalid("Session reference carries no id")
        return sid

    def establish(self, identity: Identity, previous: Optional[str] = None) -> str:
        """Open a new session for ``identity`` and return its reference.

        A ``previous`` reference from the same client is destroyed first so a
        fresh login never reuses an older session id.
        """
        if previous:
            self.destroy(previous)
        sid = secrets.token_urlsafe(32)
        self.backend.set(sid, identity.id, self.max_age)
        return self._s.dumps({"sid": sid})

    def resolve(self, reference: Optional[str]) -> Optional[Identity]:
        try:
            sid = self._session_id(reference or "")
        except SessionInvalid as e:
            if reference:
                logger.debug("Session not resolved: %s", e)
            return None
        user_id = self.backend.get(sid)
        if not user_id:
            logger.debug("Session %s unknown or expired", sid[:8])
            return None
        user = self.store.find_by_id(user_id)
        if user is None:
            logger.debug("Session %s bound to missing identity %s", sid[:8], user_id)
            self.backend.delete(sid)
            return None
        return user.identity()

    def destroy(self, reference: Optional[str]) -> None:
        try:
            sid = self._session_id(reference or "")
        except SessionInvalid:
            return
        self.backend.delete(sid)

    def context(self, reference: Optional[str]) -> AuthContext:
        identity = self.resolve(reference)
        if identity is None:
            return ANONYMOUS
        return AuthContext(identity=identity)


def cookie_settings() -> dict:
    secure = os.getenv("AUTHGATE_COOKIE_SECURE", "false").lower() in {"1", "true", "yes", "y"}
    return {"httponly": True, "samesite": "lax", "secure": secure}
