"""
backend/app/services/survivor_stats_service.py

Purpose:
    Read-side aggregates over calculated survivor statuses: standings order,
    the winner (last participant alive), and per-participant pick statistics.
    Pure functions over engine output; no fetching.

Dependencies:
    - app.models.survivor
"""

from collections import Counter
from typing import Mapping, Optional, Sequence

from app.models.survivor import (
    CalculatedSurvivorStatus,
    SurvivorOutcome,
    SurvivorPick,
    SurvivorPickStats,
    SurvivorStandingEntry,
    TeamPickCount,
)


_LIFE_LOST = ("loss", "no_pick")


def _elimination_index(status: CalculatedSurvivorStatus) -> int:
    # Round names can repeat in the ledger, and every entry after the
    # elimination is "pending", so the last life lost is the elimination.
    for i in range(len(status.round_results) - 1, -1, -1):
        rr = status.round_results[i]
        if rr.round_name == status.eliminated_at_round and rr.result in _LIFE_LOST:
            return i
    return -1


def build_standings(
    statuses: Mapping[str, CalculatedSurvivorStatus],
    total_lives: int,
) -> list[SurvivorStandingEntry]:
    """Alive first (most lives), then eliminated (latest elimination first).

    Participants with identical standing share a position.
    """
    def sort_key(item: tuple[str, CalculatedSurvivorStatus]) -> tuple:
        participant_id, status = item
        if status.is_eliminated:
            return (1, -_elimination_index(status), participant_id)
        return (0, -status.lives_remaining, participant_id)

    ordered = sorted(statuses.items(), key=sort_key)
    winner = find_winner(statuses)

    standings: list[SurvivorStandingEntry] = []
    prev_rank: tuple | None = None
    position = 0
    for index, (participant_id, status) in enumerate(ordered, start=1):
        rank = sort_key((participant_id, status))[:2]
        if rank != prev_rank:
            position = index
            prev_rank = rank
        standings.append(SurvivorStandingEntry(
            participant_id=participant_id,
            position=position,
            lives_remaining=status.lives_remaining,
            total_lives=total_lives,
            is_eliminated=status.is_eliminated,
            eliminated_at_round=status.eliminated_at_round,
            outcome=participant_outcome(participant_id, status, winner),
        ))
    return standings


def find_winner(statuses: Mapping[str, CalculatedSurvivorStatus]) -> Optional[str]:
    """The only participant still alive, when there was someone to outlast."""
    if len(statuses) < 2:
        return None
    alive = [pid for pid, status in statuses.items() if not status.is_eliminated]
    return alive[0] if len(alive) == 1 else None


def participant_outcome(
    participant_id: str,
    status: CalculatedSurvivorStatus,
    winner: Optional[str],
) -> SurvivorOutcome:
    if status.is_eliminated:
        return "lost"
    if winner == participant_id:
        return "won"
    return "active"


def most_picked_teams(picks: Sequence[SurvivorPick], limit: int = 5) -> list[TeamPickCount]:
    counts = Counter(p.external_picked_team_name for p in picks if p.external_picked_team_name)
    return [TeamPickCount(team_name=name, count=n) for name, n in counts.most_common(limit)]


def summarize_pick_results(
    status: CalculatedSurvivorStatus,
    picks: Sequence[SurvivorPick] = (),
) -> SurvivorPickStats:
    """Count decided rounds by outcome. Pending rounds are not counted."""
    counts = Counter(rr.result for rr in status.round_results)
    wins, draws, losses = counts["win"], counts["draw"], counts["loss"]
    evaluated = wins + draws + losses
    successful = wins + draws
    return SurvivorPickStats(
        total_picks=len(picks),
        win_picks=wins,
        draw_picks=draws,
        loss_picks=losses,
        missed_picks=counts["no_pick"],
        successful_picks=successful,
        failed_picks=losses,
        pick_success_rate=(successful / evaluated * 100) if evaluated else 0.0,
        most_picked_teams=most_picked_teams(picks),
    )
