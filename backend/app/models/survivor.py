"""Survivor pool models — one team per round, a life lost on every miss."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

PickResult = Literal["win", "draw", "loss", "pending", "no_pick"]
SurvivorOutcome = Literal["won", "lost", "active"]


class SurvivorPick(BaseModel):
    """A participant's team for one round, keyed by the provider's ids."""
    id: Optional[str] = None
    external_fixture_id: str
    external_round: str
    external_picked_team_id: str
    external_picked_team_name: Optional[str] = None


class SurvivorRound(BaseModel):
    round_name: str
    dates: list[str] = []  # YYYY-MM-DD, league local time


class PickEvaluation(BaseModel):
    success: bool
    finished: bool
    result: Literal["win", "draw", "loss", "pending"]


class RoundResult(BaseModel):
    round_name: str
    pick: Optional[SurvivorPick] = None
    result: PickResult
    # The whole round, not just the picked match.
    is_round_finished: bool


class CalculatedSurvivorStatus(BaseModel):
    """Derived on every read; never stored."""
    lives_remaining: int
    is_eliminated: bool
    eliminated_at_round: Optional[str] = None
    round_results: list[RoundResult] = []


class SurvivorGameContext(BaseModel):
    """Game-level inputs shared by all status requests."""
    rounds: list[SurvivorRound]
    total_lives: int = Field(ge=1)
    league_id: str
    season: str


class SurvivorStatusRequest(SurvivorGameContext):
    picks: list[SurvivorPick] = []


class SurvivorStandingsRequest(SurvivorGameContext):
    picks_by_participant: dict[str, list[SurvivorPick]]


class SurvivorStandingEntry(BaseModel):
    """Single entry in survivor standings."""
    participant_id: str
    position: int
    lives_remaining: int
    total_lives: int
    is_eliminated: bool
    eliminated_at_round: Optional[str] = None
    outcome: SurvivorOutcome = "active"


class SurvivorStandingsResponse(BaseModel):
    standings: list[SurvivorStandingEntry]
    winner: Optional[str] = None
    total_lives: int


class TeamPickCount(BaseModel):
    team_name: str
    count: int


class SurvivorPickStats(BaseModel):
    total_picks: int = 0
    win_picks: int = 0
    draw_picks: int = 0
    loss_picks: int = 0
    missed_picks: int = 0
    successful_picks: int = 0  # wins + draws
    failed_picks: int = 0  # losses
    pick_success_rate: float = 0.0  # percent of evaluated picks
    most_picked_teams: list[TeamPickCount] = []


class SurvivorStatisticsRequest(SurvivorStatusRequest):
    """One participant's picks, optionally with the rest of the game's
    participants so the game outcome (won/lost/active) can be decided."""
    participant_id: str = "me"
    rivals: dict[str, list[SurvivorPick]] = {}


class SurvivorStatisticsResponse(BaseModel):
    status: CalculatedSurvivorStatus
    stats: SurvivorPickStats
    outcome: SurvivorOutcome = "active"


class SurvivorPendingPicksRequest(SurvivorStandingsRequest):
    participant_id: Optional[str] = None


class SurvivorPendingPicksResponse(BaseModel):
    """Who still has to pick for the round currently open."""
    active_round: Optional[str] = None
    total_teams_available: int = 0
    participants_pending: list[str] = []
    current_participant_has_pending_pick: bool = False
    current_participant_is_eliminated: bool = False
