from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from tradeboard.core.entities.leaderboard import LeaderboardType


def _midnight(day: date, tz: Optional[tzinfo]) -> datetime:
    # Naive means system local time; astimezone() applies that zone's offset for `day`
    if tz is None:
        return datetime.combine(day, time()).astimezone()
    return datetime.combine(day, time(), tzinfo=tz)


def window_start(board_type: LeaderboardType, now: datetime) -> Optional[datetime]:
    """
    Earliest created_at a session may have to appear on the given board.

    daily  -> local midnight of `now`'s day
    weekly -> local midnight of the most recent Sunday (today if Sunday)
    allTime / beatMarket -> no bound

    Midnight gets the UTC offset in force on that date, so a DST change
    between the boundary and `now` is accounted for. `now` may be naive
    local time, zone-aware (zoneinfo), or the fixed-offset result of
    datetime.now().astimezone(), which is treated as system local time.
    """
    tz = now.tzinfo
    if isinstance(tz, timezone) and now.utcoffset() == now.astimezone().utcoffset():
        now, tz = now.astimezone().replace(tzinfo=None), None

    if board_type == "daily":
        return _midnight(now.date(), tz)
    if board_type == "weekly":
        # weekday(): Monday=0 ... Sunday=6
        days_since_sunday = (now.weekday() + 1) % 7
        return _midnight(now.date() - timedelta(days=days_since_sunday), tz)
    return None
