"""
backend/app/services/survivor_pending_service.py

Purpose:
    Who in a survivor game still has to pick a team for the round that is
    currently open. Eliminated participants are never pending, and once
    every match of the active round is about to kick off (or already has)
    nobody can pick any more.

Dependencies:
    - app.services.round_service
    - app.services.survivor_status_service
"""

import logging
from datetime import date, datetime, timedelta
from typing import Mapping, Optional, Sequence

from app.models.fixtures import FixtureData
from app.models.survivor import (
    SurvivorPendingPicksResponse,
    SurvivorPick,
    SurvivorRound,
)
from app.services.round_service import get_active_round
from app.services.survivor_status_service import (
    FixturesFetcher,
    prefetch_round_fixtures,
    replay_prefetched,
)
from app.utils import utcnow

logger = logging.getLogger("survivor.survivor_pending_service")

# Picks close this long before a match starts.
PICK_LOCK_WINDOW = timedelta(minutes=5)


def upcoming_fixtures(
    fixtures: Sequence[FixtureData],
    now: datetime | None = None,
    lock_window: timedelta = PICK_LOCK_WINDOW,
) -> list[FixtureData]:
    """Fixtures that can still be picked. A fixture without a kickoff time is not."""
    now = now or utcnow()
    return [
        f for f in fixtures
        if f.kickoff is not None and f.kickoff - now > lock_window
    ]


async def pending_picks(
    picks_by_participant: Mapping[str, Sequence[SurvivorPick]],
    rounds: Sequence[SurvivorRound],
    total_lives: int,
    league_id: str,
    season: str,
    participant_id: Optional[str] = None,
    now: datetime | None = None,
    today: date | None = None,
    fetch_fixtures: FixturesFetcher | None = None,
) -> SurvivorPendingPicksResponse:
    if total_lives < 1:
        raise ValueError(f"total_lives must be at least 1, got {total_lives}")
    active = get_active_round(rounds, today=today)
    if active is None:
        return SurvivorPendingPicksResponse()

    fixtures_by_round = await prefetch_round_fixtures(rounds, league_id, season, fetch_fixtures)
    round_fixtures = fixtures_by_round.get(active.round_name, [])
    open_fixtures = upcoming_fixtures(round_fixtures, now=now)

    if not open_fixtures or not picks_by_participant:
        return SurvivorPendingPicksResponse(
            active_round=active.round_name,
            total_teams_available=len(open_fixtures or round_fixtures) * 2,
        )

    statuses = await replay_prefetched(picks_by_participant, rounds, total_lives, fixtures_by_round)

    pending: list[str] = []
    for pid, picks in picks_by_participant.items():
        if statuses[pid].is_eliminated:
            continue
        if not any(p.external_round == active.round_name for p in picks):
            pending.append(pid)

    logger.info(
        "Survivor pending picks: league=%s season=%s round=%r pending=%d/%d",
        league_id, season, active.round_name, len(pending), len(picks_by_participant),
    )
    return SurvivorPendingPicksResponse(
        active_round=active.round_name,
        total_teams_available=len(open_fixtures) * 2,
        participants_pending=pending,
        current_participant_has_pending_pick=participant_id in pending,
        current_participant_is_eliminated=(
            participant_id in statuses and statuses[participant_id].is_eliminated
        ),
    )
