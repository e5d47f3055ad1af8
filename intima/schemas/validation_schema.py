from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from intima.models.enums import Severity, ValidationState
from intima.schemas.base_schema import CamelModel


class Finding(BaseModel):
    """One issue reported by the automated document reviewer."""

    field: str = "general"
    severity: Severity
    message: str = Field(..., min_length=1)
    suggested_fix: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("severity", mode="before")
    @classmethod
    def normalise_severity(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ValidationScheduled(CamelModel):
    message: str
    submission_id: str
    validation_state: ValidationState
