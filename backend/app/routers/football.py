"""Football data endpoints — round calendar and round fixtures from API-Football."""

from dataclasses import asdict

from fastapi import APIRouter, Query

from app.config import settings
from app.providers import api_football
from app.services.round_service import get_active_round, group_rounds_by_season
from app.utils import utcnow

router = APIRouter(prefix="/api/football", tags=["football"])


@router.get("/rounds")
async def get_rounds(
    league: str = Query(None),
    season: str = Query(None),
):
    """Season rounds with their match dates plus the round open for picks.

    `seasons` groups the Apertura/Clausura rounds in play order (regular
    season, playoffs, final) for round pickers.
    """
    league = league or settings.DEFAULT_LEAGUE_ID
    season = season or str(utcnow().year)
    rounds = await api_football.api_football_provider.get_rounds(league, season)
    active = get_active_round(rounds)
    return {
        "league": league,
        "season": season,
        "rounds": [r.model_dump() for r in rounds],
        "active_round": active.round_name if active else None,
        "seasons": {
            label: [asdict(r) for r in parsed]
            for label, parsed in group_rounds_by_season(rounds).items()
        },
    }


@router.get("/fixtures")
async def get_fixtures(
    round: str = Query(...),
    league: str = Query(None),
    season: str = Query(None),
    skip_cache: bool = Query(False),
):
    league = league or settings.DEFAULT_LEAGUE_ID
    season = season or str(utcnow().year)
    fixtures = await api_football.api_football_provider.get_round_fixtures(
        league, season, round, skip_cache=skip_cache,
    )
    return {
        "league": league,
        "season": season,
        "round": round,
        "fixtures": [f.model_dump() for f in fixtures],
    }
