"""Patient link repository: all credential-store access for linked patients.

Keys are namespaced as "oura:patient:<patientId>". Records are JSON-encoded
CredentialRecord documents.
"""

from typing import Any

import structlog

from oura.domain.models import CredentialRecord
from oura.store import KeyStore
from shared.exceptions import NotLinkedError, ValidationError

logger = structlog.get_logger()

KEY_PREFIX = "oura:patient:"


def credential_key(patient_id: str) -> str:
    return f"{KEY_PREFIX}{patient_id}"


class PatientLinkRepository:
    def __init__(self, store: KeyStore):
        self.store = store

    async def link(
        self, patient_id: str, api_key: str, oura_user_id: str | None = None
    ) -> dict[str, Any]:
        """Create or overwrite the credential record for a patient."""
        violations = []
        if not patient_id:
            violations.append({"field": "patientId", "message": "required", "constraint": "required"})
        if not api_key:
            violations.append({"field": "apiKey", "message": "required", "constraint": "required"})
        if violations:
            raise ValidationError("patientId and apiKey required", violations=violations)

        record = CredentialRecord(api_key=api_key, oura_user_id=oura_user_id or None)
        await self.store.set(credential_key(patient_id), record.to_json())
        logger.info("patient_linked", patient_id=patient_id)

        return {
            "success": True,
            "message": "Patient linked to Oura account successfully",
            "patientId": patient_id,
        }

    async def unlink(self, patient_id: str) -> dict[str, Any]:
        # Absence is not an error
        await self.store.delete(credential_key(patient_id))
        logger.info("patient_unlinked", patient_id=patient_id)
        return {
            "success": True,
            "message": "Patient unlinked from Oura account successfully",
        }

    async def find_credential(self, patient_id: str) -> CredentialRecord | None:
        raw = await self.store.get(credential_key(patient_id))
        if raw is None:
            return None
        return CredentialRecord.from_json(raw)

    async def get_credential(self, patient_id: str) -> CredentialRecord:
        record = await self.find_credential(patient_id)
        if record is None:
            raise NotLinkedError(patient_id)
        return record

    async def is_linked(self, patient_id: str) -> bool:
        return await self.store.get(credential_key(patient_id)) is not None
