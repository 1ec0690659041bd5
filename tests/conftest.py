"""
Pytest configuration and shared fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient, ASGITransport

from tradeboard.api.main import app, get_datasource
from tradeboard.core.interfaces.datasource import IDataSource
from tradeboard.core.entities.query import QueryResult
from tradeboard.core.services import LeaderboardQueryService
from tradeboard.infrastructure.gateways.local_mock import InMemoryDataSource

# Thursday afternoon, UTC-5
LOCAL_TZ = timezone(timedelta(hours=-5))
NOW = datetime(2026, 10, 15, 14, 30, tzinfo=LOCAL_TZ)


def session_row(id, user_id, symbol, pnl_percent, final_balance, created_at, **extra):
    row = {
        "id": id,
        "user_id": user_id,
        "symbol": symbol,
        "pnl_percent": pnl_percent,
        "final_balance": final_balance,
        "starting_balance": 10000.0,
        "beat_market_delta": None,
        "grade": None,
        "total_trades": None,
        "max_streak": None,
        "created_at": created_at,
    }
    row.update(extra)
    return row


class FailingDataSource(IDataSource):
    def __init__(self, message: str = "connection refused"):
        self.message = message
        self.calls = 0

    def is_configured(self) -> bool:
        return True

    async def execute(self, spec):
        self.calls += 1
        return QueryResult(error=self.message)


@pytest.fixture
def tables():
    profiles = [
        {"id": "u1", "username": "alice", "display_name": "Alice", "avatar_url": "https://cdn/a.png",
         "level": 5, "total_sessions": 3, "total_profit": 1200.5, "beat_market_score": 12.5, "best_streak": 4},
        {"id": "u2", "username": "bob", "display_name": "Bobby", "avatar_url": None,
         "level": None, "total_sessions": 2, "total_profit": 800, "beat_market_score": 20.0, "best_streak": 7},
        {"id": "u3", "username": None, "display_name": None, "avatar_url": None,
         "level": 2, "total_sessions": 0, "total_profit": 0, "beat_market_score": 30.0, "best_streak": 0},
        {"id": "u4", "username": "dave", "display_name": None, "avatar_url": None,
         "level": 3, "total_sessions": 1, "total_profit": -300, "beat_market_score": 5.0, "best_streak": None},
    ]
    sessions = [
        session_row("s1", "u1", "AAPL", 5.0, 10500.0, "2026-10-15T10:00:00-05:00",
                    beat_market_delta=1.5, grade="A", total_trades=10, max_streak=3),
        session_row("s2", "u2", "TSLA", 10.0, 11000.0, "2026-10-13T09:00:00-05:00",
                    beat_market_delta=-2.0, grade="S", total_trades=4, max_streak=2),
        session_row("s3", "u3", "NVDA", None, 10000.0, "2026-10-15T11:00:00-05:00"),
        session_row("s4", "u1", "MSFT", 2.5, 10250.0, "2026-10-01T12:00:00-05:00",
                    beat_market_delta=4.0, grade="B", total_trades=6, max_streak=1),
        session_row("s5", "u4", "AMZN", -3.0, 9700.0, "2026-10-10T23:00:00-05:00"),
        # Owner has no profile row; dropped by the inner join
        session_row("s6", "u9", "GME", 50.0, 15000.0, "2026-10-14T08:00:00-05:00"),
    ]
    return {"profiles": profiles, "sessions": sessions}


@pytest.fixture
def datasource(tables):
    return InMemoryDataSource(tables)


@pytest.fixture
def service(datasource):
    return LeaderboardQueryService(datasource, clock=lambda: NOW)


@pytest.fixture
async def client(datasource):
    """Async HTTP client for testing FastAPI endpoints."""
    app.dependency_overrides[get_datasource] = lambda: datasource
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
