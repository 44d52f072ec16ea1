"""Request bodies for the Oura router.

Each endpoint declares its required fields here; validation runs before
any handler logic. Field names are camelCase on the wire.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from oura.aggregator import PATIENT_IDS_REQUIRED


class LinkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    # Emptiness is checked by the repository so the error names both fields
    patient_id: str = Field("", alias="patientId")
    api_key: str = Field("", alias="apiKey")
    oura_user_id: str | None = Field(None, alias="ouraUserId")


class BatchSummaryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    patient_ids: list[str] = Field(None, alias="patientIds", validate_default=True)

    @model_validator(mode="before")
    @classmethod
    def require_object(cls, data: Any) -> Any:
        # An array or scalar body has no patientIds member at all
        if not isinstance(data, dict):
            raise PydanticCustomError("patient_ids_required", PATIENT_IDS_REQUIRED)
        return data

    @field_validator("patient_ids", mode="before")
    @classmethod
    def require_array(cls, value: Any) -> Any:
        """Missing, null, scalar or non-string members all get the same message."""
        if not isinstance(value, list) or not all(isinstance(pid, str) for pid in value):
            raise PydanticCustomError("patient_ids_required", PATIENT_IDS_REQUIRED)
        return value
