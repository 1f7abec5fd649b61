"""Shared fixtures.

The database URL and LLM keys are fixed before ``conassess`` is imported so the
engine binds to an in-memory SQLite database and no real provider is called.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("OPENROUTER_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from conassess.db import Base, engine, init_db
from conassess.deps import get_llm_client
from conassess.main import app
from conassess.schemas import ChatMessage


class FakeLLM:
    """Stands in for LLMClient; returns queued replies and records every call."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def chat(self, messages, *, temperature=None, max_tokens=None):
        self.calls.append({"messages": list(messages), "temperature": temperature, "max_tokens": max_tokens})
        if not self.replies:
            raise RuntimeError("no reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def generate(self, prompt, *, temperature=None, max_tokens=None):
        return await self.chat([ChatMessage(role="user", content=prompt)], temperature=temperature, max_tokens=max_tokens)

    async def aclose(self):
        pass


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def client(fake_llm):
    Base.metadata.drop_all(bind=engine)
    init_db()

    async def _override():
        yield fake_llm

    app.dependency_overrides[get_llm_client] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def login(client, username, password, email):
    r = client.post("/auth/register", json={"username": username, "password": password, "email": email})
    assert r.status_code == 201
    r = client.post("/auth/token", data={"username": username, "password": password})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return login(client, "alice", "s3cret", "alice@example.com")


@pytest.fixture
def other_headers(client):
    return login(client, "bob", "hunter2", "bob@example.com")
