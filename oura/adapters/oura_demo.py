"""Oura demo client: serves generated collections (no HTTP)."""

import random
from datetime import date
from typing import Any

from oura.adapters import mock_data


class OuraDemoClient:
    """Demo-mode client: same interface as the live client, generated data."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    async def get_daily_activity(self, start_date: date, end_date: date) -> dict[str, Any]:
        return mock_data.generate_activity(self._rng, start_date, end_date)

    async def get_daily_sleep(self, start_date: date, end_date: date) -> dict[str, Any]:
        return mock_data.generate_sleep(self._rng, start_date, end_date)

    async def get_daily_readiness(self, start_date: date, end_date: date) -> dict[str, Any]:
        return mock_data.generate_readiness(self._rng, start_date, end_date)

    async def get_heart_rate(self, start_date: date, end_date: date) -> dict[str, Any]:
        return mock_data.generate_heart_rate(self._rng, start_date, end_date)
