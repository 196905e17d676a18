# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exceptions."""

from __future__ import annotations

from typing import Iterable


class AuthgateError(RuntimeError):
    """Base class for authgate errors."""


class ValidationError(AuthgateError):
    """Registration fields are missing or malformed."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class DuplicateEmailError(AuthgateError):
    """An identity with this email already exists."""


class StoreError(AuthgateError):
    """The credential store or session backend failed."""


class SessionInvalid(AuthgateError):
    """A session reference could not be resolved."""
