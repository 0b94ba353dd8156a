"""
backend/tests/conftest.py

Purpose:
    Shared pytest bootstrap: backend import path and isolation of
    process-local provider state (rate-limit buckets, response cache).
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_THIS_FILE = Path(__file__).resolve()
_BACKEND_DIR = _THIS_FILE.parents[1]

if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))


@pytest.fixture(autouse=True)
def _reset_provider_state():
    from app.providers.api_football import api_football_provider
    from app.services.provider_rate_limiter import provider_rate_limiter

    provider_rate_limiter.reset()
    api_football_provider.clear_cache()
    yield
    provider_rate_limiter.reset()
    api_football_provider.clear_cache()
