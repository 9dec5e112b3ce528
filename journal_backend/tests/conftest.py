from __future__ import annotations

import json
import os
from types import SimpleNamespace

# must be set before anything under src/ is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.pop("OPENAI_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.api.main import app  # noqa: E402
from src.db.db import get_db  # noqa: E402
from src.db.models import Base  # noqa: E402
from src.services.analysis import AnalysisClient, get_analysis_client  # noqa: E402

GOOD_ANALYSIS = {
    "mood": "calm",
    "reflection": "You sound steadier than last week.",
    "suggestions": ["Take a walk", "Drink some water", "Call a friend"],
    "colorHint": "soft blue",
}


class ScriptedAnalysisClient(AnalysisClient):
    """Real prompt building and reply parsing over a canned chat-completion SDK."""

    def __init__(self):
        super().__init__(api_key=None)
        self.replies = []
        self.calls = []
        self._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=self._create)))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if self.replies else json.dumps(GOOD_ANALYSIS)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


@pytest.fixture()
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def analysis():
    return ScriptedAnalysisClient()


@pytest.fixture()
def client(session_factory, analysis):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_analysis_client] = lambda: analysis
    yield TestClient(app)
    app.dependency_overrides.clear()


def signup(client, email="a@x.com", password="pw123456", display_name=None):
    payload = {"email": email, "password": password}
    if display_name is not None:
        payload["display_name"] = display_name
    resp = client.post("/api/auth/signup", json=payload)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["token"], body["user"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def user_a(client):
    token, user = signup(client, "a@x.com")
    return {"token": token, "id": user["id"], "headers": bearer(token)}


@pytest.fixture()
def user_b(client):
    token, user = signup(client, "b@x.com")
    return {"token": token, "id": user["id"], "headers": bearer(token)}
