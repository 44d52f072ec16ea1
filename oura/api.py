"""FastAPI router for the Oura integration.

Endpoints (prefix /api/oura):
- GET    /webhook                     (verification handshake)
- POST   /webhook                     (signed notification)
- POST   /link
- GET    /patient/{id}
- GET    /patient/{id}/summary
- GET    /patient/{id}/heartrate
- DELETE /patient/{id}
- POST   /patients/batch/summary
"""

import time
from datetime import date

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import PlainTextResponse

from oura.aggregator import PATIENT_IDS_REQUIRED, BatchSummaryAggregator
from oura.fetcher import PatientDataFetcher
from oura.repository import PatientLinkRepository
from oura.schemas import BatchSummaryRequest, LinkRequest
from oura.webhook import WebhookVerifier
from shared.exceptions import ValidationError
from shared.metrics import api_requests_total, api_response_duration_seconds

router = APIRouter(prefix="/api/oura")


# --- Dependencies (services are built once in create_app) ---


def get_links(request: Request) -> PatientLinkRepository:
    return request.app.state.links


def get_fetcher(request: Request) -> PatientDataFetcher:
    return request.app.state.fetcher


def get_aggregator(request: Request) -> BatchSummaryAggregator:
    return request.app.state.aggregator


def get_verifier(request: Request) -> WebhookVerifier:
    return request.app.state.verifier


def _observe(endpoint: str, method: str, start_time: float, status_code: int = 200) -> None:
    api_requests_total.labels(
        endpoint=endpoint, method=method, status_code=str(status_code)
    ).inc()
    api_response_duration_seconds.labels(endpoint=endpoint).observe(
        time.monotonic() - start_time
    )


# --- Webhooks ---


@router.get("/webhook")
async def verify_webhook(
    verifier: WebhookVerifier = Depends(get_verifier),
    verification_token: str | None = Query(None),
    challenge: str | None = Query(None),
):
    """Oura endpoint-ownership handshake: echo the challenge if the token matches."""
    return {"challenge": verifier.verify_handshake(verification_token, challenge)}


@router.post("/webhook", response_class=PlainTextResponse)
async def handle_webhook(
    request: Request,
    verifier: WebhookVerifier = Depends(get_verifier),
    signature: str | None = Header(None, alias="x-oura-signature"),
    timestamp: str | None = Header(None, alias="x-oura-timestamp"),
):
    """Accept a signed notification. Acknowledged immediately; no further processing."""
    start_time = time.monotonic()
    raw_body = await request.body()
    verifier.verify_notification(timestamp, signature, raw_body)
    _observe("webhook", "POST", start_time)
    return PlainTextResponse("OK")


# --- Patient links ---


@router.post("/link")
async def link_patient(
    body: LinkRequest,
    links: PatientLinkRepository = Depends(get_links),
):
    """Link (or re-link, overwriting) a patient to an Oura credential."""
    start_time = time.monotonic()
    result = await links.link(body.patient_id, body.api_key, body.oura_user_id)
    _observe("link", "POST", start_time)
    return result


@router.delete("/patient/{patient_id}")
async def unlink_patient(
    patient_id: str,
    links: PatientLinkRepository = Depends(get_links),
):
    start_time = time.monotonic()
    result = await links.unlink(patient_id)
    _observe("unlink", "DELETE", start_time)
    return result


# --- Patient data ---


@router.get("/patient/{patient_id}")
async def get_patient_data(
    patient_id: str,
    fetcher: PatientDataFetcher = Depends(get_fetcher),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
):
    """Most recent activity, sleep and readiness values (default window: last 7 days)."""
    start_time = time.monotonic()
    latest = await fetcher.fetch_latest(patient_id, start_date, end_date)
    _observe("latest", "GET", start_time)
    return latest.to_response()


@router.get("/patient/{patient_id}/summary")
async def get_patient_summary(
    patient_id: str,
    fetcher: PatientDataFetcher = Depends(get_fetcher),
):
    """7-day averages plus the raw daily series."""
    start_time = time.monotonic()
    summary = await fetcher.fetch_summary(patient_id)
    _observe("summary", "GET", start_time)
    return summary.to_response()


@router.get("/patient/{patient_id}/heartrate")
async def get_patient_heart_rate(
    patient_id: str,
    fetcher: PatientDataFetcher = Depends(get_fetcher),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
):
    start_time = time.monotonic()
    heart_rate = await fetcher.fetch_heart_rate(patient_id, start_date, end_date)
    _observe("heartrate", "GET", start_time)
    return heart_rate.to_response()


@router.post("/patients/batch/summary")
async def batch_patient_summary(
    body: BatchSummaryRequest | None = None,
    aggregator: BatchSummaryAggregator = Depends(get_aggregator),
):
    """Summaries for many patients. Always 200: per-patient failures are data."""
    start_time = time.monotonic()
    if body is None:
        raise ValidationError(PATIENT_IDS_REQUIRED)
    result = await aggregator.batch_summary(body.patient_ids)
    _observe("batch_summary", "POST", start_time)
    return result.to_response()
