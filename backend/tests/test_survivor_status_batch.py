"""
backend/tests/test_survivor_status_batch.py

Purpose:
    Batch survivor evaluation must match per-participant evaluation exactly
    while fetching each distinct round only once, whatever the number of
    participants.
"""

from __future__ import annotations

import pytest

from app.models.fixtures import FixtureData
from app.models.survivor import SurvivorPick, SurvivorRound
from app.services.survivor_status_service import (
    calculate_survivor_status,
    calculate_survivor_status_batch,
    prefetch_round_fixtures,
)

LEAGUE = "262"
SEASON = "2025"


def _fixture(fixture_id: int, status: str, home_id: int, away_id: int, home_winner, away_winner) -> FixtureData:
    return FixtureData.model_validate({
        "fixture": {"id": fixture_id, "status": {"short": status}},
        "teams": {
            "home": {"id": home_id, "winner": home_winner},
            "away": {"id": away_id, "winner": away_winner},
        },
    })


def _pick(round_name: str, fixture_id: int, team_id: int) -> SurvivorPick:
    return SurvivorPick(
        external_fixture_id=str(fixture_id),
        external_round=round_name,
        external_picked_team_id=str(team_id),
    )


class _CountingFixtures:
    def __init__(self, by_round: dict[str, list[FixtureData]], failing: set[str] | None = None):
        self.by_round = by_round
        self.failing = failing or set()
        self.calls: list[str] = []

    async def __call__(self, league_id: str, season: str, round_name: str) -> list[FixtureData]:
        self.calls.append(round_name)
        if round_name in self.failing:
            raise ConnectionError(f"timeout for {round_name}")
        return list(self.by_round.get(round_name, []))


# Five rounds covering: finished, finished, partially played, started-only, not started.
ROUNDS = [SurvivorRound(round_name=f"Apertura - {i}", dates=[]) for i in range(1, 6)]
FIXTURES = {
    "Apertura - 1": [
        _fixture(11, "FT", 1, 2, True, False),
        _fixture(12, "FT", 3, 4, None, None),
    ],
    "Apertura - 2": [
        _fixture(21, "AET", 2, 3, False, True),
        _fixture(22, "PEN", 4, 1, True, False),
    ],
    "Apertura - 3": [
        _fixture(31, "FT", 1, 3, None, None),
        _fixture(32, "2H", 2, 4, None, None),
    ],
    "Apertura - 4": [
        _fixture(41, "1H", 3, 2, None, None),
        _fixture(42, "NS", 1, 4, None, None),
    ],
    "Apertura - 5": [
        _fixture(51, "NS", 1, 2, None, None),
        _fixture(52, "NS", 3, 4, None, None),
    ],
}
PARTICIPANTS = {
    "ana": [_pick("Apertura - 1", 11, 1), _pick("Apertura - 2", 21, 3), _pick("Apertura - 3", 31, 1)],
    "beto": [_pick("Apertura - 1", 11, 2), _pick("Apertura - 2", 22, 1)],
    "carla": [_pick("Apertura - 1", 12, 3), _pick("Apertura - 3", 32, 2), _pick("Apertura - 5", 51, 1)],
    "dani": [],
    "eli": [_pick("Apertura - 2", 99, 2), _pick("Apertura - 4", 41, 3)],
}


@pytest.mark.asyncio
@pytest.mark.parametrize("lives", [1, 2, 3])
async def test_batch_matches_single_participant_results(lives):
    batch_source = _CountingFixtures(FIXTURES)
    batch = await calculate_survivor_status_batch(
        PARTICIPANTS, ROUNDS, lives, LEAGUE, SEASON, fetch_fixtures=batch_source,
    )

    assert set(batch) == set(PARTICIPANTS)
    for participant_id, picks in PARTICIPANTS.items():
        single = await calculate_survivor_status(
            picks, ROUNDS, lives, LEAGUE, SEASON, fetch_fixtures=_CountingFixtures(FIXTURES),
        )
        assert batch[participant_id] == single, participant_id


@pytest.mark.asyncio
async def test_batch_known_outcomes_with_two_lives():
    batch = await calculate_survivor_status_batch(
        PARTICIPANTS, ROUNDS, 2, LEAGUE, SEASON, fetch_fixtures=_CountingFixtures(FIXTURES),
    )

    ana = batch["ana"]
    assert [r.result for r in ana.round_results] == ["win", "win", "draw", "no_pick", "pending"]
    assert ana.lives_remaining == 1

    beto = batch["beto"]
    assert [r.result for r in beto.round_results] == ["loss", "loss", "pending", "pending", "pending"]
    assert (beto.is_eliminated, beto.eliminated_at_round) == (True, "Apertura - 2")

    dani = batch["dani"]
    assert [r.result for r in dani.round_results][:2] == ["no_pick", "no_pick"]
    assert dani.eliminated_at_round == "Apertura - 2"

    eli = batch["eli"]
    # Missing fixture in a finished round counts as a loss.
    assert [r.result for r in eli.round_results][:2] == ["no_pick", "loss"]
    assert eli.is_eliminated is True


@pytest.mark.asyncio
async def test_batch_fetches_each_round_once_regardless_of_participants():
    many = {f"p{i}": PARTICIPANTS[name] for i, name in enumerate(list(PARTICIPANTS) * 20)}
    source = _CountingFixtures(FIXTURES)

    result = await calculate_survivor_status_batch(many, ROUNDS, 2, LEAGUE, SEASON, fetch_fixtures=source)

    assert len(result) == len(many) == 100
    assert sorted(source.calls) == sorted(r.round_name for r in ROUNDS)


@pytest.mark.asyncio
async def test_prefetch_deduplicates_round_names():
    rounds = ROUNDS[:2] + [SurvivorRound(round_name="Apertura - 1", dates=[])]
    source = _CountingFixtures(FIXTURES)

    fixtures_by_round = await prefetch_round_fixtures(rounds, LEAGUE, SEASON, source)

    assert list(fixtures_by_round) == ["Apertura - 1", "Apertura - 2"]
    assert sorted(source.calls) == ["Apertura - 1", "Apertura - 2"]


@pytest.mark.asyncio
async def test_batch_and_single_agree_when_a_round_fetch_fails():
    failing = {"Apertura - 2"}
    batch = await calculate_survivor_status_batch(
        PARTICIPANTS, ROUNDS, 2, LEAGUE, SEASON,
        fetch_fixtures=_CountingFixtures(FIXTURES, failing),
    )
    for participant_id, picks in PARTICIPANTS.items():
        single = await calculate_survivor_status(
            picks, ROUNDS, 2, LEAGUE, SEASON,
            fetch_fixtures=_CountingFixtures(FIXTURES, failing),
        )
        assert batch[participant_id] == single

    # Unavailable round data never costs a life.
    assert batch["ana"].round_results[1].result == "pending"


@pytest.mark.asyncio
async def test_batch_without_participants_fetches_nothing():
    source = _CountingFixtures(FIXTURES)
    assert await calculate_survivor_status_batch({}, ROUNDS, 2, LEAGUE, SEASON, fetch_fixtures=source) == {}
    assert source.calls == []


@pytest.mark.asyncio
async def test_batch_rejects_non_positive_lives():
    with pytest.raises(ValueError):
        await calculate_survivor_status_batch(
            PARTICIPANTS, ROUNDS, 0, LEAGUE, SEASON, fetch_fixtures=_CountingFixtures(FIXTURES),
        )
