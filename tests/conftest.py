import os

# Settings are read at import time; keep tests off Redis and external databases
os.environ["DATABASE_URL"] = ""
os.environ["CACHE_ENABLED"] = "false"
os.environ["MASTER_PASSWORD"] = ""
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "1000000"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quizsync.database import Base
from quizsync.main import app
from quizsync.services.authorization_service import AuthorizationPolicy, get_authorization_policy
from quizsync.storage import MemoryQuizStore, SqlQuizStore, get_quiz_store
from quizsync.utils.rate_limiter import rate_limiter
import quizsync.models  # noqa: F401

MASTER = "master-secret"


def _question(text="Capital of France?", options=("Paris", "Rome", "Madrid"), correct="Paris"):
    return {"question": text, "options": list(options), "correct_answer": correct}


@pytest.fixture
def make_quiz():
    """Factory for quiz record dicts"""

    def factory(id="q1", version=1, title="Capitals", **overrides):
        quiz = {
            "id": id,
            "version": version,
            "title": title,
            "description": "European capitals",
            "questions": [
                _question(),
                _question("Capital of Italy?", correct="Rome"),
            ],
            "timer": 120,
            "category": "General Knowledge",
            "is_public": True,
        }
        quiz.update(overrides)
        if quiz["id"] is None:
            del quiz["id"]
        if quiz["version"] is None:
            del quiz["version"]
        return quiz

    return factory


@pytest.fixture
def memory_store():
    return MemoryQuizStore()


@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        yield SqlQuizStore(session)
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def quiz_store(request):
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def policy():
    return AuthorizationPolicy(MASTER)


@pytest.fixture
def client(memory_store, policy):
    app.dependency_overrides[get_quiz_store] = lambda: memory_store
    app.dependency_overrides[get_authorization_policy] = lambda: policy
    rate_limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
