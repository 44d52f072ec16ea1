"""Domain models for linked patients, Oura metrics and webhook events.

Field names are snake_case in Python and camelCase on the wire, matching
the JSON shapes the API has always served. Always dump with by_alias=True.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Oura sends integers for most metrics; keep them integral on the way out
Number = int | float


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CredentialRecord(CamelModel):
    """Stored secret for one patient. Overwritten wholesale on re-link."""

    api_key: str
    oura_user_id: str | None = None
    linked_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "CredentialRecord":
        return cls.model_validate_json(raw)


# --- Latest metrics (fixed shape, defaults for absent fields) ---


class ActivitySnapshot(CamelModel):
    steps: Number = 0
    active_calories: Number = 0
    total_calories: Number = 0
    score: Number | None = None
    date: str | None = None


class SleepSnapshot(CamelModel):
    total_sleep: Number = 0
    deep_sleep: Number = 0
    rem_sleep: Number = 0
    score: Number | None = None
    efficiency: Number | None = None
    date: str | None = None


class ReadinessSnapshot(CamelModel):
    score: Number | None = None
    temperature_deviation: float | None = None
    date: str | None = None


class LatestMetrics(CamelModel):
    activity: ActivitySnapshot
    sleep: SleepSnapshot
    readiness: ReadinessSnapshot


class LatestMetricsResponse(CamelModel):
    patient_id: str
    has_linked_oura: bool = True
    data: LatestMetrics


# --- Summaries ---


class SummaryStats(CamelModel):
    # None when the series is empty (mean undefined)
    average_steps: int | None
    average_sleep_score: int | None
    average_readiness_score: int | None
    total_days: int


class DailyData(CamelModel):
    activity: list[dict[str, Any]]
    sleep: list[dict[str, Any]]
    readiness: list[dict[str, Any]]


class PatientSummary(CamelModel):
    patient_id: str
    period: str
    summary: SummaryStats
    daily_data: DailyData


class HeartRateResponse(CamelModel):
    patient_id: str
    data: list[dict[str, Any]]


# --- Batch ---


class BatchError(CamelModel):
    patient_id: str
    error: str


class BatchResult(CamelModel):
    data: list[PatientSummary] = Field(default_factory=list)
    errors: list[BatchError] = Field(default_factory=list)


# --- Webhooks ---


class WebhookEvent(BaseModel):
    """Inbound Oura notification. Unknown fields are kept, not rejected."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    event_type: str | None = None
    data_type: str | None = None
    object_id: str | None = None
    user_id: str | None = None
