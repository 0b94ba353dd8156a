"""
backend/app/models/fixtures.py

Purpose:
    Pydantic view of the API-Football /fixtures payload. Only the fields the
    survivor engine reads are required; display fields are optional and any
    extra keys from the provider are ignored.

Dependencies:
    - pydantic
    - app.utils
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.utils import parse_iso_datetime


class ShortFixtureStatus(str, Enum):
    TBD = "TBD"    # scheduled, date/time unknown
    NS = "NS"      # not started
    FIRST_HALF = "1H"
    HT = "HT"
    SECOND_HALF = "2H"
    ET = "ET"
    BT = "BT"      # break during extra time
    P = "P"        # penalty shootout in progress
    SUSP = "SUSP"
    INT = "INT"
    FT = "FT"
    AET = "AET"
    PEN = "PEN"
    PST = "PST"    # postponed
    CANC = "CANC"
    ABD = "ABD"
    AWD = "AWD"    # technical loss
    WO = "WO"      # walkover
    LIVE = "LIVE"


NOT_STARTED_STATUS = ShortFixtureStatus.NS.value

FINISHED_STATUSES = frozenset({
    ShortFixtureStatus.FT.value,
    ShortFixtureStatus.AET.value,
    ShortFixtureStatus.PEN.value,
})


def is_match_finished(status: str) -> bool:
    return str(status) in FINISHED_STATUSES


class FixtureStatus(BaseModel):
    long: Optional[str] = None
    short: str
    elapsed: Optional[int] = None
    extra: Optional[int] = None


class FixtureInfo(BaseModel):
    id: int
    referee: Optional[str] = None
    timezone: Optional[str] = None
    date: Optional[str] = None
    timestamp: Optional[int] = None
    status: FixtureStatus


class FixtureTeam(BaseModel):
    id: int
    name: Optional[str] = None
    logo: Optional[str] = None
    winner: Optional[bool] = None  # True won, False lost, None draw (or not decided)


class FixtureTeams(BaseModel):
    home: FixtureTeam
    away: FixtureTeam


class FixtureGoals(BaseModel):
    home: Optional[int] = None
    away: Optional[int] = None


class FixtureLeague(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    country: Optional[str] = None
    season: Optional[int] = None
    round: Optional[str] = None


class FixtureData(BaseModel):
    """One match as returned by API-Football."""
    fixture: FixtureInfo
    league: Optional[FixtureLeague] = None
    teams: FixtureTeams
    goals: Optional[FixtureGoals] = None

    @property
    def status_short(self) -> str:
        return self.fixture.status.short

    @property
    def kickoff(self) -> Optional[datetime]:
        """Scheduled start, from the unix timestamp when the provider sends one."""
        if self.fixture.timestamp is not None:
            return datetime.fromtimestamp(self.fixture.timestamp, tz=timezone.utc)
        return parse_iso_datetime(self.fixture.date)
