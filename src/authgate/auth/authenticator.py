# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging

from authgate.auth.passwords import hash_password, verify_password
from authgate.auth.users import CredentialStore
from authgate.domain import Authenticated, AuthResult, Rejected, RejectReason

logger = logging.getLogger(__name__)

# Verified against on unknown emails so both rejections cost one argon2 run.
_DUMMY_HASH = hash_password("authgate-no-such-user")


def authenticate(store: CredentialStore, email: str, password: str) -> AuthResult:
    """Check an email/password pair against the credential store.

    Returns :class:`Authenticated` on success and :class:`Rejected` with the
    reason otherwise. Store failures (:class:`StoreError`) are not caught here.
    """
    user = store.find_by_email(email)
    if user is None:
        verify_password(_DUMMY_HASH, password)
        logger.warning("Login rejected for %s: %s", email, RejectReason.NO_SUCH_USER.value)
        return Rejected(RejectReason.NO_SUCH_USER)
    if not verify_password(user.password_hash, password):
        logger.warning("Login rejected for %s: %s", email, RejectReason.BAD_PASSWORD.value)
        return Rejected(RejectReason.BAD_PASSWORD)
    return Authenticated(user.identity())
