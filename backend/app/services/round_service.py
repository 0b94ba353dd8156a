"""
backend/app/services/round_service.py

Purpose:
    Round calendar helpers: which round is currently open for picks, and
    parsing/sorting of Liga MX style round names ("Apertura - 7",
    "Clausura - Semi-finals").

Dependencies:
    - app.config
    - app.utils
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Literal, Optional, Sequence

from app.config import settings
from app.models.survivor import SurvivorRound
from app.utils import local_today, parse_iso_date

logger = logging.getLogger("survivor.round_service")

RoundType = Literal["regular", "playoff", "final"]

_ROUND_NAME_RE = re.compile(r"^(Apertura|Clausura)\s*-\s*(.+)$")
_PLAYOFF_ROUNDS: dict[str, RoundType] = {
    "Reclasificación": "playoff",
    "Reclasificacion": "playoff",
    "Quarter-finals": "playoff",
    "Semi-finals": "playoff",
    "Finals": "final",
}
_TYPE_PRIORITY = {"regular": 0, "playoff": 1, "final": 2}


@dataclass
class ParsedRound:
    season_label: str
    type: RoundType
    name: str
    original_name: str
    number: Optional[int] = None
    dates: list[date] = field(default_factory=list)


def get_active_round(
    rounds: Sequence[SurvivorRound],
    today: date | None = None,
) -> Optional[SurvivorRound]:
    """First round whose last match day is today or later.

    A round stays active until its final match day has passed. When every
    round is over the last one is returned.
    """
    if not rounds:
        return None
    if today is None:
        today = local_today(settings.LOCAL_TIMEZONE)

    for rnd in rounds:
        if not rnd.dates:
            continue
        round_end = parse_iso_date(rnd.dates[-1])
        if round_end is None:
            logger.warning("Unparseable end date %r for round %r", rnd.dates[-1], rnd.round_name)
            continue
        if round_end >= today:
            return rnd
    return rounds[-1]


def parse_round_name(round_name: str, dates: Sequence[str] = ()) -> Optional[ParsedRound]:
    """Parse "<Apertura|Clausura> - <part>"; None for any other shape."""
    original = round_name
    match = _ROUND_NAME_RE.match(round_name.strip())
    if not match:
        return None

    season_label, part = match.group(1), match.group(2).strip()
    parsed_dates = [d for d in (parse_iso_date(s) for s in dates) if d is not None]

    if part.isdigit():
        return ParsedRound(
            season_label=season_label,
            type="regular",
            name=f"Round {int(part)}",
            original_name=original,
            number=int(part),
            dates=parsed_dates,
        )

    return ParsedRound(
        season_label=season_label,
        type=_PLAYOFF_ROUNDS.get(part, "regular"),
        name=part,
        original_name=original,
        dates=parsed_dates,
    )


def _sort_key(r: ParsedRound) -> tuple:
    if r.type == "regular" and r.number is not None:
        secondary = (0, r.number, date.min)
    elif r.dates:
        secondary = (1, 0, min(r.dates))
    else:
        secondary = (2, 0, date.max)
    return (_TYPE_PRIORITY[r.type],) + secondary


def sort_rounds(parsed_rounds: Sequence[ParsedRound]) -> list[ParsedRound]:
    """Regular season (by number), then playoffs, then finals; ties by first date."""
    return sorted(parsed_rounds, key=_sort_key)


def group_rounds_by_season(rounds: Sequence[SurvivorRound]) -> dict[str, list[ParsedRound]]:
    """Parsed rounds per tournament, each sorted; unparseable names are dropped."""
    grouped: dict[str, list[ParsedRound]] = {"Apertura": [], "Clausura": []}
    for rnd in rounds:
        parsed = parse_round_name(rnd.round_name, rnd.dates)
        if parsed is not None:
            grouped[parsed.season_label].append(parsed)
    return {label: sort_rounds(parsed) for label, parsed in grouped.items()}
