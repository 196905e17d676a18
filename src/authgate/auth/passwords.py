# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError


def _hasher() -> PasswordHasher:
    # Cost factor is tunable; unset values keep argon2-cffi's defaults.
    params = {}
    for key, env in (
        ("time_cost", "AUTHGATE_ARGON2_TIME_COST"),
        ("memory_cost", "AUTHGATE_ARGON2_MEMORY_COST"),
        ("parallelism", "AUTHGATE_ARGON2_PARALLELISM"),
    ):
        raw = os.getenv(env, "").strip()
        if raw:
            params[key] = int(raw)
    return PasswordHasher(**params)


_PH = _hasher()


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _PH.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    if not hash_value or not plain:
        return False
    try:
        return _PH.verify(hash_value, plain)
    except (VerificationError, InvalidHashError):
        return False
