from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

LeaderboardType = Literal["daily", "weekly", "allTime", "beatMarket"]
LeaderboardMetric = Literal["pnl", "beatMarket"]


class SessionLeaderboardEntry(BaseModel):
    """
    One ranked trading session, joined with the owner's profile.
    Serialises with camelCase keys for the game client.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rank: int
    user_id: str
    username: str = "Unknown"
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    level: int = 1

    # Session results
    symbol: str
    pnl_percent: float = 0.0
    pnl_amount: float = 0.0
    beat_market_delta: float = 0.0
    grade: str = "C"
    total_trades: int = 0
    max_streak: int = 0

    session_id: str
    created_at: datetime


class ProfileLeaderboardEntry(BaseModel):
    """
    Cumulative per-user standing, ranked by beat market score.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rank: int
    user_id: str
    username: str = "Unknown"
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    level: int = 1

    total_sessions: int = 0
    total_profit: float = 0.0
    beat_market_score: float = 0.0
    best_streak: int = 0
