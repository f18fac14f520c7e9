import pytest
from fastapi.testclient import TestClient

from menvo.core.rate_limit import limiter
from menvo.database.supabase_client import get_service_supabase, get_supabase
from menvo.main import app
from menvo.modules.auth.service import clear_identity_cache
from menvo.modules.files.routes import get_file_storage
from tests.fakes import FakeStorage, FakeSupabase


@pytest.fixture(autouse=True)
def _isolate_globals():
    clear_identity_cache()
    enabled = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = enabled
    clear_identity_cache()
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(db, storage):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_file_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
