"""
Tests for the HTTP surface:
- /v1/leaderboard/sessions
- /v1/leaderboard/profiles
- /v1/users/{user_id}/rank
- /v1/users/{user_id}/best-session
- /v1/sessions/recent
"""
import pytest
from httpx import AsyncClient, ASGITransport

from tradeboard.api.main import app, get_datasource
from tradeboard.infrastructure.gateways.local_mock import InMemoryDataSource


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "configured": True}


@pytest.mark.asyncio
async def test_session_leaderboard(client: AsyncClient):
    resp = await client.get("/v1/leaderboard/sessions?type=allTime")
    assert resp.status_code == 200

    data = resp.json()
    assert [entry["sessionId"] for entry in data] == ["s2", "s1", "s4", "s5"]
    assert [entry["rank"] for entry in data] == [1, 2, 3, 4]

    entry = data[1]
    for key in ("userId", "username", "displayName", "avatarUrl", "level", "symbol", "pnlPercent",
                "pnlAmount", "beatMarketDelta", "grade", "totalTrades", "maxStreak", "createdAt"):
        assert key in entry
    assert entry["pnlAmount"] == 500.0


@pytest.mark.asyncio
async def test_session_leaderboard_beat_market_metric(client: AsyncClient):
    resp = await client.get("/v1/leaderboard/sessions?type=allTime&metric=beatMarket&limit=2")
    assert resp.status_code == 200
    assert [entry["sessionId"] for entry in resp.json()] == ["s4", "s1"]


@pytest.mark.asyncio
async def test_invalid_board_type_rejected(client: AsyncClient):
    resp = await client.get("/v1/leaderboard/sessions?type=monthly")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_limit_bounds(client: AsyncClient):
    resp = await client.get("/v1/leaderboard/sessions?type=allTime&limit=0")
    assert resp.status_code == 422
    resp = await client.get("/v1/leaderboard/profiles?limit=1001")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_profile_leaderboard(client: AsyncClient):
    resp = await client.get("/v1/leaderboard/profiles")
    assert resp.status_code == 200

    data = resp.json()
    assert [entry["userId"] for entry in data] == ["u2", "u1", "u4"]
    assert data[0]["beatMarketScore"] == 20.0
    assert data[0]["totalSessions"] == 2


@pytest.mark.asyncio
async def test_user_rank(client: AsyncClient):
    resp = await client.get("/v1/users/u1/rank?type=allTime")
    assert resp.status_code == 200
    assert resp.json() == {"userId": "u1", "type": "allTime", "rank": 2}

    resp = await client.get("/v1/users/nobody/rank?type=beatMarket")
    assert resp.json()["rank"] is None


@pytest.mark.asyncio
async def test_user_best_session(client: AsyncClient):
    resp = await client.get("/v1/users/u1/best-session")
    assert resp.status_code == 200
    data = resp.json()
    assert data["sessionId"] == "s1"
    assert data["rank"] == 0

    resp = await client.get("/v1/users/nobody/best-session")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_recent_sessions(client: AsyncClient):
    resp = await client.get("/v1/sessions/recent?limit=3")
    assert resp.status_code == 200
    assert [entry["sessionId"] for entry in resp.json()] == ["s3", "s1", "s2"]


@pytest.mark.asyncio
async def test_offline_mode_returns_empty_results(tables):
    app.dependency_overrides[get_datasource] = lambda: InMemoryDataSource(tables, configured=False)
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            assert (await ac.get("/health")).json()["configured"] is False
            assert (await ac.get("/v1/leaderboard/sessions?type=daily")).json() == []
            assert (await ac.get("/v1/leaderboard/profiles")).json() == []
            assert (await ac.get("/v1/users/u1/rank?type=weekly")).json()["rank"] is None
            assert (await ac.get("/v1/users/u1/best-session")).json() is None
            assert (await ac.get("/v1/sessions/recent")).json() == []
    finally:
        app.dependency_overrides.clear()


def test_datasource_selection(monkeypatch):
    from tradeboard.infrastructure.gateways.supabase_rest import SupabaseRestGateway
    from tradeboard.infrastructure.persistence.postgres_repo import PostgresRepo

    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/trade")
    assert isinstance(get_datasource(), PostgresRepo)

    monkeypatch.delenv("DATABASE_URL")
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    gateway = get_datasource()
    assert isinstance(gateway, SupabaseRestGateway)
    assert gateway.is_configured()

    monkeypatch.delenv("SUPABASE_ANON_KEY")
    assert not get_datasource().is_configured()
