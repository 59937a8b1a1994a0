import pytest
from fastapi.testclient import TestClient

from app.core.cache import session_cache
from app.core.dependencies import get_user_supabase
from app.database.supabase_client import get_supabase, get_session_supabase, get_service_client_factory
from app.main import app, limiter
from tests.fakes import FakeSupabase


@pytest.fixture
def fake():
    return FakeSupabase()


@pytest.fixture
def client(fake):
    session_cache.clear()
    limiter.reset()
    app.dependency_overrides[get_supabase] = lambda: fake
    app.dependency_overrides[get_session_supabase] = lambda: fake
    app.dependency_overrides[get_user_supabase] = lambda: fake
    app.dependency_overrides[get_service_client_factory] = lambda: fake.service_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    session_cache.clear()


@pytest.fixture
def cohort(fake):
    """A cohort with a moderator and two participants"""
    cohort = fake.seed("cohorts", id="cohort-1", name="Spring Pilgrims", description="Lent 2024")
    for token, role in (("mod", "moderator"), ("alice", "participant"), ("bob", "participant")):
        user_id = fake.add_user(token, role=role, full_name=token.title())
        fake.seed("cohort_members", cohort_id=cohort["id"], user_id=user_id, role=role)
    return cohort
