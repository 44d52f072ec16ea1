"""Single-patient data fetcher: credential -> client -> Oura collections.

fetch_latest degrades per metric: an UpstreamError on one collection is
logged and replaced by an empty series, so the call never fails because
of a single metric. fetch_summary is all-or-nothing: the first
UpstreamError cancels the other calls and propagates to the caller.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any

import structlog

from oura.adapters.factory import ClientFactory
from oura.adapters.oura_mapper import OuraMapper
from oura.adapters.protocol import OuraDataSource
from oura.domain.models import (
    DailyData,
    HeartRateResponse,
    LatestMetricsResponse,
    PatientSummary,
    SummaryStats,
)
from oura.repository import PatientLinkRepository
from shared.exceptions import UpstreamError

logger = structlog.get_logger()

EMPTY_COLLECTION: dict[str, Any] = {"data": []}


def utc_today() -> date:
    return datetime.now(UTC).date()


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (8500.5 -> 8501)."""
    return math.floor(value + 0.5)


def average(records: list[dict[str, Any]], key: str) -> int | None:
    """Mean of `key` over records, missing/null counted as 0. None for an empty series."""
    if not records:
        return None
    total = sum(record.get(key) or 0 for record in records)
    return round_half_up(total / len(records))


def first_error(group: ExceptionGroup) -> Exception:
    """The first UpstreamError in a task group failure, else its first exception."""
    for exc in group.exceptions:
        if isinstance(exc, UpstreamError):
            return exc
    return group.exceptions[0]


class PatientDataFetcher:
    def __init__(
        self,
        links: PatientLinkRepository,
        client_factory: ClientFactory,
        window_days: int = 7,
        today: Callable[[], date] = utc_today,
    ):
        self.links = links
        self.client_factory = client_factory
        self.window_days = window_days
        self.today = today
        self._mapper = OuraMapper()

    @property
    def period_label(self) -> str:
        return f"{self.window_days} days"

    def default_window(
        self, start: date | None = None, end: date | None = None
    ) -> tuple[date, date]:
        """Trailing window ending today: (today - window_days, today)."""
        today = self.today()
        return start or today - timedelta(days=self.window_days), end or today

    async def _client_for(self, patient_id: str) -> OuraDataSource:
        credential = await self.links.get_credential(patient_id)
        return self.client_factory(credential)

    async def fetch_latest(
        self,
        patient_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> LatestMetricsResponse:
        client = await self._client_for(patient_id)
        start, end = self.default_window(start, end)

        async def or_empty(name: str, call: Awaitable[dict[str, Any]]) -> dict[str, Any]:
            try:
                return await call
            except UpstreamError as exc:
                logger.warning(
                    "metric_fetch_degraded",
                    patient_id=patient_id,
                    metric=name,
                    error=exc.detail,
                )
                return EMPTY_COLLECTION

        activity, sleep, readiness = await asyncio.gather(
            or_empty("activity", client.get_daily_activity(start, end)),
            or_empty("sleep", client.get_daily_sleep(start, end)),
            or_empty("readiness", client.get_daily_readiness(start, end)),
        )

        return LatestMetricsResponse(
            patient_id=patient_id,
            data=self._mapper.latest(activity, sleep, readiness),
        )

    async def fetch_summary(self, patient_id: str) -> PatientSummary:
        client = await self._client_for(patient_id)
        start, end = self.default_window()

        # First failure cancels the sibling calls before the error propagates
        try:
            async with asyncio.TaskGroup() as tg:
                activity_task = tg.create_task(client.get_daily_activity(start, end))
                sleep_task = tg.create_task(client.get_daily_sleep(start, end))
                readiness_task = tg.create_task(client.get_daily_readiness(start, end))
        except ExceptionGroup as group:
            raise first_error(group) from None

        activity, sleep, readiness = (
            activity_task.result(),
            sleep_task.result(),
            readiness_task.result(),
        )
        activity_days = activity.get("data") or []
        sleep_days = sleep.get("data") or []
        readiness_days = readiness.get("data") or []

        return PatientSummary(
            patient_id=patient_id,
            period=self.period_label,
            summary=SummaryStats(
                average_steps=average(activity_days, "steps"),
                average_sleep_score=average(sleep_days, "score"),
                average_readiness_score=average(readiness_days, "score"),
                total_days=len(activity_days),
            ),
            daily_data=DailyData(
                activity=activity_days,
                sleep=sleep_days,
                readiness=readiness_days,
            ),
        )

    async def fetch_heart_rate(
        self,
        patient_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> HeartRateResponse:
        client = await self._client_for(patient_id)
        start, end = self.default_window(start, end)
        payload = await client.get_heart_rate(start, end)
        return HeartRateResponse(patient_id=patient_id, data=payload.get("data") or [])
