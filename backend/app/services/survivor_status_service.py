"""
backend/app/services/survivor_status_service.py

Purpose:
    Derive a survivor participant's lives, elimination round and per-round
    ledger from their picks and the current fixture results. Nothing here is
    persisted: every call replays the enrolled rounds from the start, so the
    status is always a projection of (picks, rounds, lives, fixtures).

    The replay is a left fold over the rounds in the order given. One fold
    step (apply_round) decides a single round; the single-participant and
    batch entry points only differ in where a round's fixtures come from.

Dependencies:
    - app.models.fixtures
    - app.models.survivor
    - app.providers.api_football (default fixtures source)
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Mapping, Optional, Sequence

from app.models.fixtures import NOT_STARTED_STATUS, FixtureData, is_match_finished
from app.models.survivor import (
    CalculatedSurvivorStatus,
    PickEvaluation,
    RoundResult,
    SurvivorPick,
    SurvivorRound,
)

logger = logging.getLogger("survivor.survivor_status_service")

# (league_id, season, round_name) -> fixtures of that round
FixturesFetcher = Callable[[str, str, str], Awaitable[list[FixtureData]]]
_RoundLookup = Callable[[str], Awaitable[list[FixtureData]]]


def evaluate_pick(fixture: FixtureData, picked_team_id: str) -> PickEvaluation:
    """Classify a pick against its fixture using the per-side winner flag.

    winner True = won, False = lost, None = draw. A draw is survival.
    A team id matching neither side is read as the away side.
    """
    if not is_match_finished(fixture.status_short):
        return PickEvaluation(success=False, finished=False, result="pending")

    home = fixture.teams.home
    picked = home if str(picked_team_id) == str(home.id) else fixture.teams.away

    if picked.winner is None:
        return PickEvaluation(success=True, finished=True, result="draw")
    if picked.winner:
        return PickEvaluation(success=True, finished=True, result="win")
    return PickEvaluation(success=False, finished=True, result="loss")


def is_round_finished(fixtures: Sequence[FixtureData]) -> bool:
    """Every match concluded. No fixtures means no data, never finished."""
    if not fixtures:
        return False
    return all(is_match_finished(f.status_short) for f in fixtures)


def has_round_started(fixtures: Sequence[FixtureData]) -> bool:
    """At least one match has left the not-started state."""
    return any(f.status_short != NOT_STARTED_STATUS for f in fixtures)


@dataclass(frozen=True)
class SurvivorTally:
    """Accumulator carried through the fold."""
    lives_remaining: int
    is_eliminated: bool = False
    eliminated_at_round: Optional[str] = None

    def lose_life(self, round_name: str) -> "SurvivorTally":
        if self.is_eliminated:
            return self
        lives = self.lives_remaining - 1
        if lives <= 0:
            return SurvivorTally(
                lives_remaining=lives,
                is_eliminated=True,
                eliminated_at_round=round_name,
            )
        return replace(self, lives_remaining=lives)


def _find_fixture(fixtures: Sequence[FixtureData], fixture_id: str) -> Optional[FixtureData]:
    for fixture in fixtures:
        if str(fixture.fixture.id) == str(fixture_id):
            return fixture
    return None


def apply_round(
    tally: SurvivorTally,
    round_name: str,
    fixtures: Sequence[FixtureData],
    pick: Optional[SurvivorPick],
) -> tuple[SurvivorTally, RoundResult]:
    """Decide one round and return the next tally plus the ledger entry."""
    if tally.is_eliminated:
        return tally, RoundResult(
            round_name=round_name, pick=pick, result="pending", is_round_finished=False,
        )

    if not is_round_finished(fixtures):
        if pick is None:
            if has_round_started(fixtures):
                # Too late to pick: forced forfeiture.
                return tally.lose_life(round_name), RoundResult(
                    round_name=round_name, pick=None, result="no_pick", is_round_finished=False,
                )
            return tally, RoundResult(
                round_name=round_name, pick=None, result="pending", is_round_finished=False,
            )

        fixture = _find_fixture(fixtures, pick.external_fixture_id)
        if fixture is not None:
            evaluation = evaluate_pick(fixture, pick.external_picked_team_id)
            if evaluation.finished:
                # Own match is over while siblings still play.
                if not evaluation.success:
                    tally = tally.lose_life(round_name)
                return tally, RoundResult(
                    round_name=round_name,
                    pick=pick,
                    result=evaluation.result,
                    is_round_finished=False,
                )
        return tally, RoundResult(
            round_name=round_name, pick=pick, result="pending", is_round_finished=False,
        )

    if pick is None:
        return tally.lose_life(round_name), RoundResult(
            round_name=round_name, pick=None, result="no_pick", is_round_finished=True,
        )

    fixture = _find_fixture(fixtures, pick.external_fixture_id)
    if fixture is None:
        logger.warning(
            "Survivor pick fixture %s missing from finished round %r, counted as loss",
            pick.external_fixture_id, round_name,
        )
        return tally.lose_life(round_name), RoundResult(
            round_name=round_name, pick=pick, result="loss", is_round_finished=True,
        )

    evaluation = evaluate_pick(fixture, pick.external_picked_team_id)
    if not evaluation.success:
        tally = tally.lose_life(round_name)
    return tally, RoundResult(
        round_name=round_name, pick=pick, result=evaluation.result, is_round_finished=True,
    )


def _picks_by_round(picks: Sequence[SurvivorPick]) -> dict[str, SurvivorPick]:
    # Later picks for the same round replace earlier ones.
    return {pick.external_round: pick for pick in picks}


async def _replay(
    picks: Sequence[SurvivorPick],
    rounds: Sequence[SurvivorRound],
    total_lives: int,
    fixtures_for: _RoundLookup,
) -> CalculatedSurvivorStatus:
    picks_by_round = _picks_by_round(picks)
    tally = SurvivorTally(lives_remaining=total_lives)
    round_results: list[RoundResult] = []

    for rnd in rounds:
        name = rnd.round_name
        # Fixtures are irrelevant once eliminated; skip the lookup.
        fixtures = [] if tally.is_eliminated else await fixtures_for(name)
        tally, result = apply_round(tally, name, fixtures, picks_by_round.get(name))
        round_results.append(result)

    return CalculatedSurvivorStatus(
        lives_remaining=tally.lives_remaining,
        is_eliminated=tally.is_eliminated,
        eliminated_at_round=tally.eliminated_at_round,
        round_results=round_results,
    )


def _require_lives(total_lives: int) -> None:
    if int(total_lives) < 1:
        raise ValueError(f"total_lives must be at least 1, got {total_lives}")


def _default_fetcher() -> FixturesFetcher:
    from app.providers.api_football import api_football_provider
    return api_football_provider.get_round_fixtures


async def _safe_fetch(
    fetch: FixturesFetcher, league_id: str, season: str, round_name: str,
) -> list[FixtureData]:
    """Fetch failures degrade to "no data" (not started, not finished)."""
    try:
        fixtures = await fetch(league_id, season, round_name)
    except Exception as e:
        logger.warning(
            "Fixtures fetch failed for league=%s season=%s round=%r: %s",
            league_id, season, round_name, e,
        )
        return []
    return list(fixtures or [])


async def prefetch_round_fixtures(
    rounds: Sequence[SurvivorRound],
    league_id: str,
    season: str,
    fetch_fixtures: FixturesFetcher | None = None,
) -> dict[str, list[FixtureData]]:
    """Fetch each distinct round once, concurrently."""
    fetch = fetch_fixtures or _default_fetcher()
    names = list(dict.fromkeys(r.round_name for r in rounds))
    fetched = await asyncio.gather(*(
        _safe_fetch(fetch, league_id, season, name) for name in names
    ))
    return dict(zip(names, fetched))


async def replay_prefetched(
    picks_by_participant: Mapping[str, Sequence[SurvivorPick]],
    rounds: Sequence[SurvivorRound],
    total_lives: int,
    fixtures_by_round: Mapping[str, list[FixtureData]],
) -> dict[str, CalculatedSurvivorStatus]:
    """Replay every participant against fixtures fetched beforehand.

    Rounds missing from the map count as "no data".
    """
    _require_lives(total_lives)

    async def _shared(round_name: str) -> list[FixtureData]:
        return fixtures_by_round.get(round_name, [])

    return {
        participant_id: await _replay(picks, rounds, total_lives, _shared)
        for participant_id, picks in picks_by_participant.items()
    }


async def calculate_survivor_status(
    picks: Sequence[SurvivorPick],
    rounds: Sequence[SurvivorRound],
    total_lives: int,
    league_id: str,
    season: str,
    fetch_fixtures: FixturesFetcher | None = None,
) -> CalculatedSurvivorStatus:
    """Status for one participant, fetching each round's fixtures on demand."""
    _require_lives(total_lives)
    fetch = fetch_fixtures or _default_fetcher()

    async def _on_demand(round_name: str) -> list[FixtureData]:
        return await _safe_fetch(fetch, league_id, season, round_name)

    status = await _replay(picks, rounds, total_lives, _on_demand)
    logger.debug(
        "Survivor status: league=%s season=%s lives=%d/%d eliminated_at=%s",
        league_id, season, status.lives_remaining, total_lives, status.eliminated_at_round,
    )
    return status


async def calculate_survivor_status_batch(
    picks_by_participant: Mapping[str, Sequence[SurvivorPick]],
    rounds: Sequence[SurvivorRound],
    total_lives: int,
    league_id: str,
    season: str,
    fetch_fixtures: FixturesFetcher | None = None,
) -> dict[str, CalculatedSurvivorStatus]:
    """Status for many participants with one fetch per distinct round.

    Produces exactly what calculate_survivor_status would for each
    participant; only the number of fixture fetches differs.
    """
    _require_lives(total_lives)
    if not picks_by_participant:
        return {}

    fixtures_by_round = await prefetch_round_fixtures(rounds, league_id, season, fetch_fixtures)
    results = await replay_prefetched(picks_by_participant, rounds, total_lives, fixtures_by_round)

    logger.info(
        "Survivor batch: league=%s season=%s participants=%d rounds_fetched=%d eliminated=%d",
        league_id, season, len(results), len(fixtures_by_round),
        sum(1 for s in results.values() if s.is_eliminated),
    )
    return results
