import os
import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

# Cheap argon2 parameters and a signing key, set before authgate is imported.
os.environ.setdefault("AUTHGATE_ARGON2_TIME_COST", "1")
os.environ.setdefault("AUTHGATE_ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("AUTHGATE_ARGON2_PARALLELISM", "1")
os.environ.setdefault("AUTHGATE_SECRET_KEY", "test-secret")

import importlib
from pathlib import Path

import pytest

from authgate.auth.backends import MemorySessionBackend
from authgate.auth.session import SessionManager
from authgate.auth.users import YamlCredentialStore


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def users_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "users.yml"


@pytest.fixture()
def store(users_path: Path) -> YamlCredentialStore:
    return YamlCredentialStore(users_path)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sessions(store, clock) -> SessionManager:
    return SessionManager(store, MemorySessionBackend(clock=clock), secret="test-secret", max_age=3600)


@pytest.fixture()
def app_module(users_path: Path, monkeypatch):
    """Fresh ``authgate.app`` bound to a temporary users file and memory sessions."""
    monkeypatch.setenv("AUTHGATE_USERS_PATH", str(users_path))
    monkeypatch.setenv("AUTHGATE_SESSION_BACKEND", "memory")

    import authgate.app as module
    importlib.reload(module)
    return module


@pytest.fixture()
def client(app_module):
    from fastapi.testclient import TestClient

    return TestClient(app_module.app)
