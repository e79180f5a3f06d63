from typing import List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from explainer.auth import GoogleIdentity
from explainer.db import build_engine, build_sessionmaker, get_db
from explainer.main import create_app
from explainer.models import Base
from explainer.routes import auth as auth_routes

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01" + b"\x00" * 256 + b"\xff\xd9"
CLASSIFY_MARKER = "classify it into one of these subjects"


class FakeVision:
    """Stands in for Gemini: answers tutoring and classification prompts separately."""

    def __init__(
        self,
        explanation: str = "Step 1: isolate x. Step 2: divide both sides by 2.",
        label: str = "Mathematics - Algebra",
        explain_error: Optional[Exception] = None,
        classify_error: Optional[Exception] = None,
    ) -> None:
        self.explanation = explanation
        self.label = label
        self.explain_error = explain_error
        self.classify_error = classify_error
        self.calls: List[Tuple[str, bytes, str]] = []

    def classify_calls(self) -> List[Tuple[str, bytes, str]]:
        return [c for c in self.calls if CLASSIFY_MARKER in c[0]]

    def explain_calls(self) -> List[Tuple[str, bytes, str]]:
        return [c for c in self.calls if CLASSIFY_MARKER not in c[0]]

    async def generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        self.calls.append((prompt, image_bytes, mime_type))
        if CLASSIFY_MARKER in prompt:
            if self.classify_error:
                raise self.classify_error
            return self.label
        if self.explain_error:
            raise self.explain_error
        return self.explanation


@pytest_asyncio.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def vision():
    return FakeVision()


@pytest.fixture
def app(session_factory, vision, tmp_path):
    app = create_app(vision_model=vision)

    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    app.state.analyzer.upload_dir = str(tmp_path / "uploads")
    return app


@pytest.fixture
def fake_google(monkeypatch):
    """Credentials look like 'sub|email|name'."""

    def _verify(credential: str) -> GoogleIdentity:
        sub, email, name = credential.split("|")
        return GoogleIdentity(google_id=sub, email=email, name=name, avatar=f"https://img.test/{sub}.png")

    monkeypatch.setattr(auth_routes, "verify_google_credential", _verify)
    return _verify


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def other_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


async def sign_in(client: AsyncClient, sub: str, email: str, name: str) -> dict:
    response = await client.post("/auth/google", json={"credential": f"{sub}|{email}|{name}"})
    assert response.status_code == 200, response.text
    return response.json()["user"]


async def csrf_headers(client: AsyncClient) -> dict:
    response = await client.get("/api/csrf-token")
    assert response.status_code == 200
    return {"X-CSRF-Token": response.json()["csrfToken"]}
