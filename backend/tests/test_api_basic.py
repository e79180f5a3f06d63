"""
Basic API tests for the problem explainer API
"""
import pytest

from explainer.config import settings
from explainer.enums import Subject

from conftest import csrf_headers, sign_in


@pytest.mark.asyncio
async def test_health_check(client):
    """Test health endpoint"""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_version(client):
    """Test version endpoint"""
    response = await client.get("/version")
    assert response.status_code == 200
    assert response.json()["version"] == settings.APP_VERSION


@pytest.mark.asyncio
async def test_subjects(client):
    """Subjects come back in their fixed order"""
    response = await client.get("/api/subjects")
    assert response.status_code == 200
    subjects = response.json()["subjects"]
    assert subjects == Subject.labels()
    assert subjects[0] == "Mathematics - Algebra"
    assert subjects[-1] == "Other"


@pytest.mark.asyncio
async def test_test_db(client):
    response = await client.get("/api/test-db")
    assert response.status_code == 200
    assert response.json() == {"message": "Database connection successful!", "problemCount": 0}


@pytest.mark.asyncio
async def test_cache_stats_lists_cached_keys(client):
    await client.get("/api/problems")
    response = await client.get("/api/cache/stats")
    assert response.status_code == 200
    assert response.json()["cacheStats"] == {"size": 1, "keys": ["problems:all"]}


@pytest.mark.asyncio
async def test_cache_clear_empties_the_cache(client):
    await client.get("/api/problems")
    headers = await csrf_headers(client)

    response = await client.post("/api/cache/clear", headers=headers)

    assert response.status_code == 200
    stats = (await client.get("/api/cache/stats")).json()["cacheStats"]
    assert stats == {"size": 0, "keys": []}


@pytest.mark.asyncio
async def test_current_user_requires_auth(client):
    """Test that the profile endpoint requires authentication"""
    response = await client.get("/auth/user")
    assert response.status_code == 401
    assert response.json()["error"] == "AUTH_REQUIRED"


@pytest.mark.asyncio
async def test_rating_requires_auth(client):
    headers = await csrf_headers(client)
    response = await client.put("/api/problems/1/rating", json={"rating": "thumbs_up"}, headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_sign_in_then_user_then_logout(client, fake_google):
    user = await sign_in(client, "g-1", "ada@example.com", "Ada")
    assert user["email"] == "ada@example.com"
    assert user["avatar"] == "https://img.test/g-1.png"

    me = await client.get("/auth/user")
    assert me.status_code == 200
    assert me.json()["user"]["id"] == user["id"]

    logout = await client.post("/auth/logout")
    assert logout.json() == {"message": "Logged out successfully"}
    assert (await client.get("/auth/user")).status_code == 401


@pytest.mark.asyncio
async def test_repeat_sign_in_updates_the_same_user(client, fake_google):
    first = await sign_in(client, "g-1", "ada@example.com", "Ada")
    second = await sign_in(client, "g-1", "ada@example.com", "Ada Lovelace")
    assert second["id"] == first["id"]
    assert second["name"] == "Ada Lovelace"


@pytest.mark.asyncio
async def test_bad_google_credential_is_rejected(client, monkeypatch):
    from explainer.exceptions import AuthRequiredError
    from explainer.routes import auth as auth_routes

    def _reject(credential):
        raise AuthRequiredError("Invalid Google credential")

    monkeypatch.setattr(auth_routes, "verify_google_credential", _reject)
    response = await client.post("/auth/google", json={"credential": "nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/nothing-here")
    assert response.status_code == 404
    assert "error" in response.json()
