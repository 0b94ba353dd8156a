"""Survivor endpoints — derived status, standings, pick statistics and pending picks."""

from fastapi import APIRouter

from app.models.survivor import (
    CalculatedSurvivorStatus,
    SurvivorPendingPicksRequest,
    SurvivorPendingPicksResponse,
    SurvivorStandingsRequest,
    SurvivorStandingsResponse,
    SurvivorStatisticsRequest,
    SurvivorStatisticsResponse,
    SurvivorStatusRequest,
)
from app.services import survivor_stats_service
from app.services.survivor_pending_service import pending_picks
from app.services.survivor_status_service import (
    calculate_survivor_status,
    calculate_survivor_status_batch,
)

router = APIRouter(prefix="/api/survivor", tags=["survivor"])


@router.post("/status", response_model=CalculatedSurvivorStatus)
async def get_status(body: SurvivorStatusRequest):
    """Lives, elimination round and round ledger for one participant."""
    return await calculate_survivor_status(
        body.picks, body.rounds, body.total_lives, body.league_id, body.season,
    )


@router.post("/standings", response_model=SurvivorStandingsResponse)
async def get_standings(body: SurvivorStandingsRequest):
    """Standings for every participant of a game (one fetch per round)."""
    statuses = await calculate_survivor_status_batch(
        body.picks_by_participant, body.rounds, body.total_lives, body.league_id, body.season,
    )
    return SurvivorStandingsResponse(
        standings=survivor_stats_service.build_standings(statuses, body.total_lives),
        winner=survivor_stats_service.find_winner(statuses),
        total_lives=body.total_lives,
    )


@router.post("/statistics", response_model=SurvivorStatisticsResponse)
async def get_statistics(body: SurvivorStatisticsRequest):
    """Pick statistics for one participant; pass rivals to decide won/active."""
    picks_by_participant = {**body.rivals, body.participant_id: body.picks}
    statuses = await calculate_survivor_status_batch(
        picks_by_participant, body.rounds, body.total_lives, body.league_id, body.season,
    )
    status = statuses[body.participant_id]
    winner = survivor_stats_service.find_winner(statuses)
    return SurvivorStatisticsResponse(
        status=status,
        stats=survivor_stats_service.summarize_pick_results(status, body.picks),
        outcome=survivor_stats_service.participant_outcome(body.participant_id, status, winner),
    )


@router.post("/pending-picks", response_model=SurvivorPendingPicksResponse)
async def get_pending_picks(body: SurvivorPendingPicksRequest):
    """Participants still alive without a pick for the active round."""
    return await pending_picks(
        body.picks_by_participant,
        body.rounds,
        body.total_lives,
        body.league_id,
        body.season,
        participant_id=body.participant_id,
    )
