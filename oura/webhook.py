"""Oura webhook verification.

Two stateless checks:
- handshake (GET): the provider proves it knows the verification token;
  we echo its challenge.
- notification (POST): HMAC-SHA256 over timestamp + JSON body, keyed with
  the client secret, uppercase hex, compared in constant time.

An unconfigured (empty) token or secret rejects everything.
"""

import hashlib
import hmac
import json
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from oura.domain.models import WebhookEvent
from shared.exceptions import SignatureError, ValidationError
from shared.metrics import webhook_events_total

logger = structlog.get_logger()

INVALID_TOKEN = "Invalid verification token"
INVALID_SIGNATURE = "Invalid signature"


def compute_signature(secret: str, timestamp: str, body: bytes | str) -> str:
    if isinstance(body, str):
        body = body.encode()
    mac = hmac.new(secret.encode(), timestamp.encode() + body, hashlib.sha256)
    return mac.hexdigest().upper()


def _js_numbers(value: Any) -> Any:
    """Integral floats as ints, so 1.0 serializes as 1 like a JS number."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    if isinstance(value, dict):
        return {key: _js_numbers(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_js_numbers(item) for item in value]
    return value


def compact_json(payload: Any) -> bytes:
    """Serialize the way JSON.stringify does: no whitespace, non-ASCII kept.

    Integral floats are written without a fraction. Exponent formatting of
    very large or very small floats still differs from JS; such bodies only
    verify against the raw-bytes form.
    """
    return json.dumps(_js_numbers(payload), separators=(",", ":"), ensure_ascii=False).encode()


class WebhookVerifier:
    def __init__(self, verification_token: str, client_secret: str):
        self._verification_token = verification_token
        self._client_secret = client_secret

    def verify_handshake(self, token: str | None, challenge: str | None) -> str | None:
        """Return the challenge to echo, or raise SignatureError."""
        if not self._verification_token or token is None:
            raise SignatureError(INVALID_TOKEN)
        if not hmac.compare_digest(token.encode(), self._verification_token.encode()):
            logger.warning("webhook_handshake_rejected")
            raise SignatureError(INVALID_TOKEN)
        logger.info("webhook_handshake_verified")
        return challenge

    def _signed_forms(self, raw_body: bytes) -> list[bytes]:
        # The exact bytes on the wire, then the compact re-serialization a
        # JSON.stringify-based sender signs.
        forms = [raw_body]
        try:
            compact = compact_json(json.loads(raw_body))
        except ValueError:
            return forms
        if compact != raw_body:
            forms.append(compact)
        return forms

    def verify_notification(
        self, timestamp: str | None, signature: str | None, raw_body: bytes
    ) -> WebhookEvent:
        """Validate the signature and parse the event, or raise SignatureError."""
        if not self._client_secret or not timestamp or not signature:
            webhook_events_total.labels(event_type="", data_type="", result="rejected").inc()
            raise SignatureError(INVALID_SIGNATURE)

        provided = signature.encode()
        if not any(
            hmac.compare_digest(
                compute_signature(self._client_secret, timestamp, body).encode(), provided
            )
            for body in self._signed_forms(raw_body)
        ):
            webhook_events_total.labels(event_type="", data_type="", result="rejected").inc()
            logger.warning("webhook_signature_rejected")
            raise SignatureError(INVALID_SIGNATURE)

        try:
            event = WebhookEvent.model_validate_json(raw_body)
        except PydanticValidationError as exc:
            raise ValidationError("Webhook body must be a JSON object") from exc

        webhook_events_total.labels(
            event_type=event.event_type or "",
            data_type=event.data_type or "",
            result="accepted",
        ).inc()
        logger.info(
            "webhook_received",
            event_type=event.event_type,
            data_type=event.data_type,
            object_id=event.object_id,
            user_id=event.user_id,
        )
        return event
