# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import tempfile
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, Tuple

import yaml
from filelock import FileLock, Timeout

from authgate.domain import DEFAULT_ROLE, Role, UserRecord, normalize_email
from authgate.exceptions import DuplicateEmailError, StoreError

logger = logging.getLogger(__name__)

# IMPORTANT: do not rely on current working directory.
# Anchor the default users.yml path to the project root (works well with editable installs).
BASE_DIR = Path(__file__).resolve().parents[3]
LOCK_TIMEOUT_SECONDS = float(os.getenv("AUTHGATE_USERS_LOCK_TIMEOUT", "10"))


def default_users_path() -> Path:
    """Users file from AUTHGATE_USERS_PATH, else <project>/data/users.yml."""
    return Path(os.getenv("AUTHGATE_USERS_PATH", str(BASE_DIR / "data" / "users.yml"))).resolve()


class CredentialStore(Protocol):
    def find_by_email(self, email: str) -> Optional[UserRecord]: ...

    def find_by_id(self, user_id: str) -> Optional[UserRecord]: ...

    def create(
        self, *, name: str, email: str, password_hash: str, role: Role = DEFAULT_ROLE
    ) -> UserRecord: ...


def _parse_users(raw: object) -> Dict[str, UserRecord]:
    users = (raw.get("users") or {}) if isinstance(raw, dict) else {}
    out: Dict[str, UserRecord] = {}
    for uid, udata in users.items():
        if not isinstance(udata, dict):
            continue
        user_id = str(uid).strip()
        if not user_id:
            continue
        role_raw = str(udata.get("role") or "").strip().lower()
        role = Role.parse(role_raw)
        if role_raw and role.value != role_raw:
            logger.warning("Unknown role %r for user %s, treating as %s", role_raw, user_id, role.value)
        out[user_id] = UserRecord(
            id=user_id,
            name=str(udata.get("name") or "").strip(),
            email=normalize_email(udata.get("email") or ""),
            role=role,
            password_hash=str(udata.get("password_hash") or "").strip(),
        )
    return out


class YamlCredentialStore:
    """Identities kept in a YAML document keyed by identity id.

    Reads are cached until the file's mtime changes. ``create`` reloads the
    file under a lock so the email check and the insert happen together.
    The lock is a sidecar ``<file>.lock`` so separate processes writing the
    same file (the app and ``scripts/create_user.py``) are serialised too.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else default_users_path()
        self._lock = threading.Lock()
        self._file_lock = FileLock(str(self.path) + ".lock", timeout=LOCK_TIMEOUT_SECONDS)
        self._cache: Tuple[float, Dict[str, UserRecord]] = (0.0, {})

    @contextmanager
    def _locked_file(self) -> Iterator[None]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file_lock.acquire()
        except Timeout as e:
            raise StoreError(f"Timed out waiting for lock on {self.path}") from e
        except OSError as e:
            raise StoreError(f"Cannot lock {self.path}: {e}") from e
        try:
            yield
        finally:
            self._file_lock.release()

    def _mtime(self) -> float:
        try:
            return self.path.stat().st_mtime if self.path.exists() else 0.0
        except OSError as e:
            raise StoreError(f"Cannot stat {self.path}: {e}") from e

    def _read_raw(self) -> dict:
        if not self.path.exists():
            return {"version": 1, "users": {}}
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise StoreError(f"Malformed users file: {self.path}")
        if not isinstance(raw.get("users"), dict):
            raw["users"] = {}
        return raw

    def _write_raw(self, raw: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                yaml.safe_dump(raw, fh, sort_keys=False, allow_unicode=True)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e

    def users(self) -> Dict[str, UserRecord]:
        mtime = self._mtime()
        cached_mtime, cached_users = self._cache
        if mtime and mtime == cached_mtime:
            return cached_users
        users = _parse_users(self._read_raw())
        self._cache = (mtime, users)
        return users

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        uid = str(user_id or "").strip()
        if not uid:
            return None
        return self.users().get(uid)

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        e = normalize_email(email)
        if not e:
            return None
        for u in self.users().values():
            if u.email == e:
                return u
        return None

    def create(
        self, *, name: str, email: str, password_hash: str, role: Role = DEFAULT_ROLE
    ) -> UserRecord:
        e = normalize_email(email)
        role = Role.parse(role)
        with self._lock, self._locked_file():
            raw = self._read_raw()
            if any(u.email == e for u in _parse_users(raw).values()):
                raise DuplicateEmailError(f"Email already registered: {e}")
            user_id = uuid.uuid4().hex
            raw.setdefault("version", 1)
            raw["users"][user_id] = {
                "name": name,
                "email": e,
                "role": role.value,
                "password_hash": password_hash,
            }
            self._write_raw(raw)
            # Force the next read to pick up the file we just wrote.
            self._cache = (0.0, {})
        logger.info("Created identity %s with role %s", user_id, role.value)
        return UserRecord(id=user_id, name=name, email=e, role=role, password_hash=password_hash)
