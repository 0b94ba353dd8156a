"""
backend/app/providers/api_football.py

Purpose:
    API-Football (RapidAPI) adapter for round fixtures and the round calendar
    of a league season. Responses are cached in-process; on any failure the
    last good value (or an empty list) is returned so callers treat the round
    as "no data yet".

Dependencies:
    - app.providers.http_client
    - app.services.provider_rate_limiter
    - app.config
"""

import logging
import time
from typing import Any, Optional
from urllib.parse import quote, urlparse

from pydantic import ValidationError

from app.config import settings
from app.models.fixtures import FixtureData
from app.models.survivor import SurvivorRound
from app.providers.http_client import ResilientClient
from app.services.provider_rate_limiter import provider_rate_limiter

logger = logging.getLogger("survivor.api_football")

PROVIDER_NAME = "api_football"


class ApiFootballError(Exception):
    """API-Football answered 200 with a non-empty `errors` block."""


def _parse_fixtures(raw: list[Any], round_name: str) -> list[FixtureData]:
    fixtures: list[FixtureData] = []
    for item in raw:
        try:
            fixtures.append(FixtureData.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed fixture in round %r: %s", round_name, e.errors()[:1],
            )
    return fixtures


def _parse_rounds(raw: list[Any]) -> list[SurvivorRound]:
    rounds: list[SurvivorRound] = []
    for item in raw:
        # dates=true yields {"round", "dates"}; without it the items are bare names.
        if isinstance(item, str):
            rounds.append(SurvivorRound(round_name=item))
        elif isinstance(item, dict) and item.get("round"):
            rounds.append(SurvivorRound(
                round_name=str(item["round"]),
                dates=[str(d) for d in item.get("dates") or []],
            ))
    return rounds


class ApiFootballProvider:
    """API-Football fixtures source used by the survivor engine."""

    def __init__(self, client: ResilientClient | None = None):
        self._client = client or ResilientClient(
            PROVIDER_NAME,
            timeout=settings.API_FOOTBALL_TIMEOUT_SECONDS,
            max_retries=settings.API_FOOTBALL_MAX_RETRIES,
            base_delay=settings.API_FOOTBALL_BASE_DELAY_SECONDS,
        )
        self._cache: dict[str, dict[str, Any]] = {}

    def _get_cached(self, key: str, ttl_seconds: int) -> Optional[list]:
        entry = self._cache.get(key)
        if entry and (time.time() - entry["ts"]) < ttl_seconds:
            return entry["data"]
        return None

    def _set_cache(self, key: str, data: list) -> None:
        self._cache[key] = {"data": data, "ts": time.time()}

    def _stale(self, key: str) -> list:
        entry = self._cache.get(key)
        return entry["data"] if entry else []

    def clear_cache(self) -> None:
        self._cache.clear()

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.FOOTBALL_API_URL and settings.FOOTBALL_API_KEY)

    async def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        base_url = settings.FOOTBALL_API_URL.rstrip("/")
        await provider_rate_limiter.acquire(PROVIDER_NAME, settings.API_FOOTBALL_RATE_LIMIT_RPM)
        resp = await self._client.get(
            f"{base_url}{path}",
            params=params,
            headers={
                "X-RapidAPI-Key": settings.FOOTBALL_API_KEY,
                "X-RapidAPI-Host": urlparse(base_url).hostname or "",
            },
        )
        resp.raise_for_status()
        payload = resp.json() or {}
        errors = payload.get("errors")
        if errors:
            raise ApiFootballError(str(errors))
        return payload

    async def get_round_fixtures(
        self,
        league_id: str,
        season: str,
        round_name: str,
        skip_cache: bool = False,
    ) -> list[FixtureData]:
        """All fixtures of one round. Empty list means "no data yet"."""
        cache_key = f"fixtures:round:{league_id}:{season}:{quote(round_name)}"
        if not skip_cache:
            cached = self._get_cached(cache_key, settings.FIXTURES_CACHE_TTL_SECONDS)
            if cached is not None:
                logger.debug("Cached fixtures for round %r: %d", round_name, len(cached))
                return cached

        if not self.is_configured():
            logger.error("API-Football URL or key not configured")
            return []

        try:
            payload = await self._get(
                "/fixtures",
                {"league": str(league_id), "season": str(season), "round": round_name},
            )
            fixtures = _parse_fixtures(payload.get("response") or [], round_name)
        except Exception as e:
            logger.error(
                "API-Football fixtures error for league=%s season=%s round=%r: %s",
                league_id, season, round_name, e,
            )
            return self._stale(cache_key)

        self._set_cache(cache_key, fixtures)
        logger.info(
            "API-Football: %d fixtures for league=%s season=%s round=%r",
            len(fixtures), league_id, season, round_name,
        )
        return fixtures

    async def get_rounds(self, league_id: str, season: str) -> list[SurvivorRound]:
        """Round calendar of a season, in provider order, with match dates."""
        cache_key = f"rounds:{league_id}:{season}"
        cached = self._get_cached(cache_key, settings.ROUNDS_CACHE_TTL_SECONDS)
        if cached is not None:
            return cached

        if not self.is_configured():
            logger.error("API-Football URL or key not configured")
            return []

        try:
            payload = await self._get(
                "/fixtures/rounds",
                {"league": str(league_id), "season": str(season), "dates": "true"},
            )
            rounds = _parse_rounds(payload.get("response") or [])
        except Exception as e:
            logger.error("API-Football rounds error for league=%s season=%s: %s", league_id, season, e)
            return self._stale(cache_key)

        self._set_cache(cache_key, rounds)
        logger.info("API-Football: %d rounds for league=%s season=%s", len(rounds), league_id, season)
        return rounds

    async def aclose(self) -> None:
        await self._client.aclose()


api_football_provider = ApiFootballProvider()
