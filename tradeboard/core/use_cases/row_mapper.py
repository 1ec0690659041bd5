import math
from typing import Any

from tradeboard.core.entities.leaderboard import SessionLeaderboardEntry, ProfileLeaderboardEntry

DEFAULT_USERNAME = "Unknown"
DEFAULT_LEVEL = 1
DEFAULT_GRADE = "C"


def _number(value: Any, default: float = 0.0) -> float:
    # Store numerics arrive as Decimal (psycopg2), str or float (JSON)
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def _profile_of(row: dict) -> dict:
    profile = row.get("profiles")
    # PostgREST returns a one-element list for some embed cardinalities
    if isinstance(profile, list):
        profile = profile[0] if profile else None
    return profile or {}


def map_session_row(row: dict, rank: int) -> SessionLeaderboardEntry:
    """
    Projects a sessions row (with its embedded profile) onto the leaderboard shape.
    Missing or falsy fields fall back to the documented defaults.
    """
    profile = _profile_of(row)
    return SessionLeaderboardEntry(
        rank=rank,
        user_id=row.get("user_id"),
        username=profile.get("username") or DEFAULT_USERNAME,
        display_name=profile.get("display_name"),
        avatar_url=profile.get("avatar_url"),
        level=profile.get("level") or DEFAULT_LEVEL,
        symbol=row.get("symbol"),
        pnl_percent=_number(row.get("pnl_percent")),
        pnl_amount=_number(row.get("final_balance")) - _number(row.get("starting_balance")),
        beat_market_delta=_number(row.get("beat_market_delta")),
        grade=row.get("grade") or DEFAULT_GRADE,
        total_trades=row.get("total_trades") or 0,
        max_streak=row.get("max_streak") or 0,
        session_id=row.get("id"),
        created_at=row.get("created_at"),
    )


def map_profile_row(row: dict, rank: int) -> ProfileLeaderboardEntry:
    return ProfileLeaderboardEntry(
        rank=rank,
        user_id=row.get("id"),
        username=row.get("username") or DEFAULT_USERNAME,
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        level=row.get("level") or DEFAULT_LEVEL,
        total_sessions=row.get("total_sessions") or 0,
        total_profit=_number(row.get("total_profit")),
        beat_market_score=_number(row.get("beat_market_score")),
        best_streak=row.get("best_streak") or 0,
    )
