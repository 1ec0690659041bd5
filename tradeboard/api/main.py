import logging
import os
from typing import List, Optional
from fastapi import FastAPI, Query, Path, Depends
from fastapi.middleware.cors import CORSMiddleware

# --- Imports ---
from tradeboard.core.interfaces.datasource import IDataSource
from tradeboard.core.services import LeaderboardQueryService, USER_RANK_SCAN_LIMIT
from tradeboard.core.entities.leaderboard import (
    LeaderboardMetric,
    LeaderboardType,
    ProfileLeaderboardEntry,
    SessionLeaderboardEntry,
)
from tradeboard.infrastructure.gateways.supabase_rest import SupabaseRestGateway
from tradeboard.infrastructure.persistence.postgres_repo import PostgresRepo

# Setup Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("Tradeboard")

app = FastAPI(title="Tradeboard API", version="1.0.0", description="Session and profile leaderboards for the trading game")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Dependency Injection ---

def get_datasource() -> IDataSource:
    db_url = os.getenv("DATABASE_URL")
    if db_url:
        return PostgresRepo(db_url)

    return SupabaseRestGateway(
        url=os.getenv("SUPABASE_URL"),
        api_key=os.getenv("SUPABASE_ANON_KEY"),
        timeout=float(os.getenv("SUPABASE_TIMEOUT_SECONDS", "10")),
    )

def get_service(datasource: IDataSource = Depends(get_datasource)) -> LeaderboardQueryService:
    return LeaderboardQueryService(datasource)

# --- Endpoints ---

@app.get("/health")
async def health(datasource: IDataSource = Depends(get_datasource)):
    return {"status": "healthy", "configured": datasource.is_configured()}

@app.get("/v1/leaderboard/sessions", response_model=List[SessionLeaderboardEntry])
async def get_session_leaderboard(
    board_type: LeaderboardType = Query(..., alias="type", description="daily, weekly, allTime or beatMarket"),
    metric: LeaderboardMetric = Query("pnl", description="'pnl' or 'beatMarket'"),
    limit: int = Query(50, ge=1, le=USER_RANK_SCAN_LIMIT),
    service: LeaderboardQueryService = Depends(get_service)
):
    return await service.get_session_leaderboard(board_type, metric, limit)

@app.get("/v1/leaderboard/profiles", response_model=List[ProfileLeaderboardEntry])
async def get_profile_leaderboard(
    limit: int = Query(50, ge=1, le=USER_RANK_SCAN_LIMIT),
    service: LeaderboardQueryService = Depends(get_service)
):
    """
    Skill leaderboard: cumulative beat market score per player.
    """
    return await service.get_profile_leaderboard(limit)

@app.get("/v1/users/{user_id}/rank")
async def get_user_rank(
    user_id: str = Path(...),
    board_type: LeaderboardType = Query(..., alias="type"),
    service: LeaderboardQueryService = Depends(get_service)
):
    """
    Rank of the user's best session on a board. null when outside the top 1000.
    """
    rank = await service.get_user_rank(user_id, board_type)
    return {"userId": user_id, "type": board_type, "rank": rank}

@app.get("/v1/users/{user_id}/best-session", response_model=Optional[SessionLeaderboardEntry])
async def get_user_best_session(
    user_id: str = Path(...),
    service: LeaderboardQueryService = Depends(get_service)
):
    return await service.get_user_best_session(user_id)

@app.get("/v1/sessions/recent", response_model=List[SessionLeaderboardEntry])
async def get_recent_sessions(
    limit: int = Query(20, ge=1, le=USER_RANK_SCAN_LIMIT),
    service: LeaderboardQueryService = Depends(get_service)
):
    return await service.get_recent_sessions(limit)
