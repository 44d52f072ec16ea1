"""Oura V2 daily collections -> fixed-shape latest-metrics mapper.

Inbound anti-corruption layer: translates Oura's snake_case field names
into the API's stable camelCase snapshot shape.

Default policy: counts default to 0, scores/ratios/dates default to None.
A field is "absent" when missing or null; a real zero is kept.
"""

from typing import Any

from oura.domain.models import (
    ActivitySnapshot,
    LatestMetrics,
    ReadinessSnapshot,
    SleepSnapshot,
)


def latest_record(payload: dict[str, Any]) -> dict[str, Any]:
    """Last element of the collection's data array (upstream orders by day), or {}."""
    records = payload.get("data") or []
    return records[-1] if records else {}


def _field(record: dict[str, Any], key: str, default: Any = None) -> Any:
    value = record.get(key)
    return default if value is None else value


def _to_float(value: Any) -> float | None:
    """Oura (and older demo payloads) may send deviations as strings."""
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class OuraMapper:
    def activity(self, record: dict[str, Any]) -> ActivitySnapshot:
        return ActivitySnapshot(
            steps=_field(record, "steps", 0),
            active_calories=_field(record, "active_calories", 0),
            total_calories=_field(record, "total_calories", 0),
            score=_field(record, "score"),
            date=_field(record, "day"),
        )

    def sleep(self, record: dict[str, Any]) -> SleepSnapshot:
        return SleepSnapshot(
            total_sleep=_field(record, "total_sleep_duration", 0),
            deep_sleep=_field(record, "deep_sleep_duration", 0),
            rem_sleep=_field(record, "rem_sleep_duration", 0),
            score=_field(record, "score"),
            efficiency=_field(record, "efficiency"),
            date=_field(record, "day"),
        )

    def readiness(self, record: dict[str, Any]) -> ReadinessSnapshot:
        return ReadinessSnapshot(
            score=_field(record, "score"),
            temperature_deviation=_to_float(record.get("temperature_deviation")),
            date=_field(record, "day"),
        )

    def latest(
        self,
        activity: dict[str, Any],
        sleep: dict[str, Any],
        readiness: dict[str, Any],
    ) -> LatestMetrics:
        """Map three collection payloads to their most recent snapshots."""
        return LatestMetrics(
            activity=self.activity(latest_record(activity)),
            sleep=self.sleep(latest_record(sleep)),
            readiness=self.readiness(latest_record(readiness)),
        )
