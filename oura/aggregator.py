"""Batch summary aggregation across patients.

Every patient's summary is started at once (no concurrency cap) and the
join waits for all of them. Each per-patient task converts its own
failure into an error entry, so one patient can never abort the batch.

Invariant: each requested id lands in exactly one of data/errors, and
input order is preserved within both lists.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

import structlog

from oura.domain.models import BatchError, BatchResult, PatientSummary
from oura.fetcher import PatientDataFetcher
from shared.exceptions import NotLinkedError, UpstreamError, ValidationError
from shared.metrics import batch_patients_total

logger = structlog.get_logger()

PATIENT_IDS_REQUIRED = "patientIds array required"


def validate_patient_ids(patient_ids: Any) -> list[str]:
    """Accept a list/tuple of strings; an empty list is valid."""
    if not isinstance(patient_ids, (list, tuple)):
        raise ValidationError(PATIENT_IDS_REQUIRED)
    if not all(isinstance(pid, str) for pid in patient_ids):
        raise ValidationError(PATIENT_IDS_REQUIRED)
    return list(patient_ids)


class BatchSummaryAggregator:
    def __init__(self, fetcher: PatientDataFetcher):
        self.fetcher = fetcher

    async def _outcome(self, patient_id: str) -> PatientSummary | BatchError:
        try:
            return await self.fetcher.fetch_summary(patient_id)
        except (NotLinkedError, UpstreamError) as exc:
            logger.warning("batch_patient_failed", patient_id=patient_id, error=exc.detail)
            return BatchError(patient_id=patient_id, error=exc.detail)
        except Exception as exc:
            logger.exception("batch_patient_crashed", patient_id=patient_id)
            return BatchError(patient_id=patient_id, error=str(exc) or type(exc).__name__)

    async def batch_summary(self, patient_ids: Sequence[str]) -> BatchResult:
        ids = validate_patient_ids(patient_ids)
        outcomes = await asyncio.gather(*(self._outcome(pid) for pid in ids))

        result = BatchResult()
        for outcome in outcomes:
            if isinstance(outcome, BatchError):
                result.errors.append(outcome)
            else:
                result.data.append(outcome)

        batch_patients_total.labels(outcome="success").inc(len(result.data))
        batch_patients_total.labels(outcome="error").inc(len(result.errors))
        logger.info(
            "batch_summary_completed",
            requested=len(ids),
            succeeded=len(result.data),
            failed=len(result.errors),
        )
        return result
