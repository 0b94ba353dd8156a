"""
backend/tests/test_survivor_stats_service.py

Purpose:
    Standings order, winner detection and pick statistics derived from
    calculated survivor statuses.
"""

from __future__ import annotations

from app.models.survivor import CalculatedSurvivorStatus, RoundResult, SurvivorPick
from app.services.survivor_stats_service import (
    build_standings,
    find_winner,
    most_picked_teams,
    participant_outcome,
    summarize_pick_results,
)


def _status(results: list[str], lives: int, eliminated_at: str | None = None) -> CalculatedSurvivorStatus:
    return CalculatedSurvivorStatus(
        lives_remaining=lives,
        is_eliminated=eliminated_at is not None,
        eliminated_at_round=eliminated_at,
        round_results=[
            RoundResult(round_name=f"R{i}", result=r, is_round_finished=r != "pending")
            for i, r in enumerate(results, start=1)
        ],
    )


def _pick(round_name: str, team: str) -> SurvivorPick:
    return SurvivorPick(
        external_fixture_id="1",
        external_round=round_name,
        external_picked_team_id=team,
        external_picked_team_name=team,
    )


def test_standings_alive_first_then_latest_elimination():
    statuses = {
        "early_out": _status(["loss", "loss", "pending"], 0, "R2"),
        "late_out": _status(["loss", "win", "loss"], 0, "R3"),
        "one_life": _status(["loss", "win", "win"], 1),
        "full": _status(["win", "win", "draw"], 2),
        "full_too": _status(["draw", "win", "win"], 2),
    }

    standings = build_standings(statuses, total_lives=2)

    assert [s.participant_id for s in standings] == ["full", "full_too", "one_life", "late_out", "early_out"]
    assert [s.position for s in standings] == [1, 1, 3, 4, 5]
    assert standings[3].eliminated_at_round == "R3"
    assert all(s.total_lives == 2 for s in standings)


def test_find_winner_needs_a_sole_survivor_among_several():
    alive = _status(["win"], 1)
    out = _status(["loss"], 0, "R1")

    assert find_winner({"a": alive, "b": out, "c": out}) == "a"
    assert find_winner({"a": alive, "b": alive}) is None
    assert find_winner({"a": alive}) is None
    assert find_winner({"a": out, "b": out}) is None


def test_summarize_pick_results_ignores_pending():
    status = _status(["win", "draw", "loss", "no_pick", "pending"], 1)
    picks = [_pick("R1", "America"), _pick("R2", "Tigres"), _pick("R3", "America")]

    stats = summarize_pick_results(status, picks)

    assert (stats.win_picks, stats.draw_picks, stats.loss_picks, stats.missed_picks) == (1, 1, 1, 1)
    assert stats.successful_picks == 2
    assert (stats.total_picks, stats.failed_picks) == (3, 1)
    assert round(stats.pick_success_rate, 2) == 66.67
    assert stats.most_picked_teams[0].team_name == "America"
    assert stats.most_picked_teams[0].count == 2


def test_summarize_pick_results_without_decided_rounds():
    stats = summarize_pick_results(_status(["pending", "pending"], 3))
    assert stats.pick_success_rate == 0.0
    assert stats.most_picked_teams == []


def test_most_picked_teams_limit():
    picks = [_pick(f"R{i}", f"Team {i % 7}") for i in range(21)]
    top = most_picked_teams(picks, limit=5)
    assert len(top) == 5
    assert all(t.count == 3 for t in top)


def _ledger(entries: list[tuple[str, str]], lives: int, eliminated_at: str | None = None) -> CalculatedSurvivorStatus:
    return CalculatedSurvivorStatus(
        lives_remaining=lives,
        is_eliminated=eliminated_at is not None,
        eliminated_at_round=eliminated_at,
        round_results=[
            RoundResult(round_name=name, result=result, is_round_finished=result != "pending")
            for name, result in entries
        ],
    )


def test_standings_rank_repeated_round_by_the_entry_that_eliminated():
    # Enrolled rounds R1, R2, R1: "late" loses its last life on the second R1.
    late = _ledger([("R1", "no_pick"), ("R2", "no_pick"), ("R1", "no_pick")], 0, "R1")
    middle = _ledger([("R1", "no_pick"), ("R2", "no_pick"), ("R1", "pending")], 0, "R2")
    # Out on the first R1; the repeated R1 afterwards is only a pending entry.
    early = _ledger([("R1", "no_pick"), ("R2", "pending"), ("R1", "pending")], 0, "R1")

    standings = build_standings({"early": early, "middle": middle, "late": late}, total_lives=3)

    assert [s.participant_id for s in standings] == ["late", "middle", "early"]
    assert [s.position for s in standings] == [1, 2, 3]


def test_standings_report_outcome_per_participant():
    statuses = {
        "alive": _status(["win", "win"], 1),
        "out": _status(["loss", "pending"], 0, "R1"),
    }
    standings = {s.participant_id: s for s in build_standings(statuses, total_lives=1)}

    assert standings["alive"].outcome == "won"
    assert standings["out"].outcome == "lost"


def test_participant_outcome():
    alive = _status(["win"], 1)
    out = _status(["loss"], 0, "R1")

    assert participant_outcome("a", out, winner=None) == "lost"
    assert participant_outcome("a", alive, winner="a") == "won"
    assert participant_outcome("a", alive, winner=None) == "active"
    assert participant_outcome("a", alive, winner="b") == "active"
