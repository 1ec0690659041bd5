from datetime import datetime
from typing import Callable, List, Optional
from pydantic import ValidationError
import logging

from tradeboard.core.interfaces.datasource import IDataSource
from tradeboard.core.entities.query import Embed, Filter, Order, QuerySpec
from tradeboard.core.entities.leaderboard import (
    LeaderboardMetric,
    LeaderboardType,
    ProfileLeaderboardEntry,
    SessionLeaderboardEntry,
)
from tradeboard.core.use_cases.leaderboard_window import window_start
from tradeboard.core.use_cases.row_mapper import map_profile_row, map_session_row

logger = logging.getLogger(__name__)

SESSION_COLUMNS = [
    "id",
    "user_id",
    "symbol",
    "pnl_percent",
    "final_balance",
    "starting_balance",
    "beat_market_delta",
    "grade",
    "total_trades",
    "max_streak",
    "created_at",
]

PROFILE_EMBED = Embed(
    table="profiles",
    columns=["username", "display_name", "avatar_url", "level"],
    local_column="user_id",
    foreign_column="id",
    inner=True,
)

# get_user_rank only scans this many entries; anyone below is reported unranked
USER_RANK_SCAN_LIMIT = 1000


def _local_now() -> datetime:
    return datetime.now().astimezone()


class LeaderboardQueryService:
    """
    Read-only leaderboard queries over the sessions and profiles tables.

    Every operation returns a value of its declared type: an unconfigured
    store or a failed query yields [] (lists) or None (lookups).
    """

    def __init__(self, datasource: IDataSource, clock: Optional[Callable[[], datetime]] = None):
        self.db = datasource
        self.clock = clock or _local_now

    # --- Query builders ---

    def build_session_query(
        self, board_type: LeaderboardType, metric: LeaderboardMetric = "pnl", limit: int = 50
    ) -> QuerySpec:
        filters = [Filter(column="pnl_percent", op="not_null")]

        since = window_start(board_type, self.clock())
        if since is not None:
            filters.append(Filter(column="created_at", op="gte", value=since))

        if metric == "beatMarket" or board_type == "beatMarket":
            order = Order(column="beat_market_delta", ascending=False, nulls_first=False)
        else:
            order = Order(column="pnl_percent", ascending=False)

        return QuerySpec(
            table="sessions",
            columns=SESSION_COLUMNS,
            embeds=[PROFILE_EMBED],
            filters=filters,
            order=order,
            limit=limit,
        )

    def build_profile_query(self, limit: int = 50) -> QuerySpec:
        return QuerySpec(
            table="profiles",
            filters=[Filter(column="total_sessions", op="gt", value=0)],
            order=Order(column="beat_market_score", ascending=False),
            limit=limit,
        )

    def build_best_session_query(self, user_id: str) -> QuerySpec:
        return QuerySpec(
            table="sessions",
            columns=SESSION_COLUMNS,
            embeds=[PROFILE_EMBED],
            filters=[Filter(column="user_id", op="eq", value=user_id)],
            order=Order(column="pnl_percent", ascending=False, nulls_first=False),
            limit=1,
            single=True,
        )

    def build_recent_sessions_query(self, limit: int = 20) -> QuerySpec:
        return QuerySpec(
            table="sessions",
            columns=SESSION_COLUMNS,
            embeds=[PROFILE_EMBED],
            order=Order(column="created_at", ascending=False),
            limit=limit,
        )

    # --- Read operations ---

    async def get_session_leaderboard(
        self, board_type: LeaderboardType, metric: LeaderboardMetric = "pnl", limit: int = 50
    ) -> List[SessionLeaderboardEntry]:
        """
        Best sessions for a time window, ranked by pnl_percent or beat_market_delta.
        """
        if not self.db.is_configured():
            return []

        result = await self.db.execute(self.build_session_query(board_type, metric, limit))
        if not result.ok:
            logger.error(f"Error fetching leaderboard: {result.error}")
            return []

        return self._rank_sessions(result.data or [])

    async def get_profile_leaderboard(self, limit: int = 50) -> List[ProfileLeaderboardEntry]:
        """
        Cumulative leaderboard by beat market score, for players with at least one session.
        """
        if not self.db.is_configured():
            return []

        result = await self.db.execute(self.build_profile_query(limit))
        if not result.ok:
            logger.error(f"Error fetching profile leaderboard: {result.error}")
            return []

        entries = []
        for row in result.data or []:
            try:
                entries.append(map_profile_row(row, rank=len(entries) + 1))
            except ValidationError as e:
                logger.warning(f"Skipping malformed profile row: {e}")
        return entries

    async def get_user_rank(self, user_id: str, board_type: LeaderboardType) -> Optional[int]:
        """
        Position of the user's best session on the given board, or None if the
        user is not within the first USER_RANK_SCAN_LIMIT entries.
        """
        metric = "beatMarket" if board_type == "beatMarket" else "pnl"
        leaderboard = await self.get_session_leaderboard(board_type, metric, USER_RANK_SCAN_LIMIT)
        for entry in leaderboard:
            if entry.user_id == user_id:
                return entry.rank
        return None

    async def get_user_best_session(self, user_id: str) -> Optional[SessionLeaderboardEntry]:
        """
        The user's highest pnl_percent session for sharing. Rank is 0; callers
        look up the real rank separately.
        """
        if not self.db.is_configured():
            return None

        result = await self.db.execute(self.build_best_session_query(user_id))
        if not result.ok:
            logger.error(f"Error fetching best session for {user_id}: {result.error}")
            return None
        if not result.data:
            return None

        row = result.data if isinstance(result.data, dict) else result.data[0]
        try:
            return map_session_row(row, rank=0)
        except ValidationError as e:
            logger.warning(f"Malformed best session for {user_id}: {e}")
            return None

    async def get_recent_sessions(self, limit: int = 20) -> List[SessionLeaderboardEntry]:
        """
        Newest sessions for the activity feed. Rank here is feed position only.
        """
        if not self.db.is_configured():
            return []

        result = await self.db.execute(self.build_recent_sessions_query(limit))
        if not result.ok:
            logger.error(f"Error fetching recent sessions: {result.error}")
            return []

        return self._rank_sessions(result.data or [])

    def _rank_sessions(self, rows: List[dict]) -> List[SessionLeaderboardEntry]:
        entries = []
        for row in rows:
            try:
                entries.append(map_session_row(row, rank=len(entries) + 1))
            except ValidationError as e:
                logger.warning(f"Skipping malformed session row: {e}")
        return entries
