"""Shared fixtures for the hiring tracker tests."""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient

from backend.hiring.auth import TokenAuthenticator
from backend.hiring.db_io import InMemoryCandidateStore
from backend.hiring.models import Candidate, STATUS_NEW
from backend.hiring.resume_storage import ResumeStorage
from backend.main import (
    app,
    get_authenticator,
    get_clock,
    get_resume_storage,
    get_store,
)

NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)

TOKENS = {"token-alice": "owner-alice", "token-bob": "owner-bob"}


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_candidate():
    """Factory for candidates with sensible defaults and unique ids."""
    ids = count(1)

    def _make(
        full_name="Jane Doe",
        applied_position="Frontend Developer",
        skills=("React",),
        status=STATUS_NEW,
        matching_score=0,
        created_at=None,
        user_id="owner-alice",
        id=None,
    ):
        return Candidate(
            id=id or f"cand-{next(ids)}",
            user_id=user_id,
            full_name=full_name,
            applied_position=applied_position,
            status=status,
            skills=tuple(skills),
            matching_score=matching_score,
            created_at=created_at or NOW - timedelta(days=1),
        )

    return _make


@pytest.fixture
def store():
    return InMemoryCandidateStore(clock=lambda: NOW)


@pytest.fixture
def client(store, tmp_path):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_authenticator] = lambda: TokenAuthenticator(TOKENS)
    app.dependency_overrides[get_resume_storage] = lambda: ResumeStorage(tmp_path, "/uploads")
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def alice_headers():
    return {"Authorization": "Bearer token-alice"}


@pytest.fixture
def bob_headers():
    return {"Authorization": "Bearer token-bob"}
