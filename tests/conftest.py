import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so 'src' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("USE_LOCAL_DB", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture()
def upload_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def repo():
    from src.infrastructure.database.repositories.user_repository import UserRepository

    return UserRepository(client=None)


@pytest.fixture()
def app(repo, upload_dir):
    # lazy import after env configured
    from src.main import create_app

    return create_app(users=repo, upload_dir=str(upload_dir))


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)
