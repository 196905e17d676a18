# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication core.

This package provides:
- Password hashing/verification (argon2)
- Credential store backed by data/users.yml
- Credential verification (authenticator)
- Server-side sessions referenced by signed cookies (itsdangerous)
"""
