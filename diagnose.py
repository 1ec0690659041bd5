
import sys
import os
import asyncio

# Add project root to path
sys.path.append(os.getcwd())

try:
    from tradeboard.core.services import LeaderboardQueryService
    from tradeboard.infrastructure.gateways.local_mock import InMemoryDataSource
    from tradeboard.api.main import app, get_datasource
    print("✅ All imports successful.")
except Exception as e:
    print(f"❌ Import failed: {e}")
    sys.exit(1)

# Test ranking logic against in-memory rows
def test_ranking():
    tables = {
        "profiles": [{"id": "A", "username": "alpha"}, {"id": "B", "username": "bravo"}],
        "sessions": [
            {"id": "s1", "user_id": "A", "symbol": "SPY", "pnl_percent": 5.0, "final_balance": 10500,
             "starting_balance": 10000, "created_at": "2026-01-01T00:00:00+00:00"},
            {"id": "s2", "user_id": "B", "symbol": "SPY", "pnl_percent": 10.0, "final_balance": 11000,
             "starting_balance": 10000, "created_at": "2026-01-01T00:00:00+00:00"},
        ],
    }
    try:
        service = LeaderboardQueryService(InMemoryDataSource(tables))
        board = asyncio.run(service.get_session_leaderboard("allTime"))

        if [(e.rank, e.user_id) for e in board] == [(1, "B"), (2, "A")]:
            print("✅ Ranking logic basic test passed.")
        else:
            print(f"❌ Ranking logic failed: {board}")
    except Exception as e:
        print(f"❌ Ranking logic crashed: {e}")

# Report which store the API would use
def check_datasource():
    datasource = get_datasource()
    state = "configured" if datasource.is_configured() else "offline (empty results)"
    print(f"ℹ️  Datasource: {type(datasource).__name__}, {state}")

if __name__ == "__main__":
    test_ranking()
    check_datasource()
