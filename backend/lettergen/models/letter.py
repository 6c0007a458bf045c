"""
Pydantic models for letter generation.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class EmployeeRecord(BaseModel):
    """
    One row of compensation-change data, keyed by email.

    All values are the sheet's cell text, passed through verbatim.
    base_pay is read from the sheet but no template placeholder consumes it;
    it is kept so a future placeholder can use it.
    """
    employee_id: str = ""
    name: str = ""
    email: str = ""
    department: str = ""
    base_currency: str = ""
    base_pay: str = ""
    change_base_pay: str = ""
    raise_effective_date: str = ""
    stock_quantity: str = ""
    vesting_date: str = ""
    bonus_structure_change: str = ""
    bonus_effective_date: str = ""


# Column order in the source sheet (index 0..11)
RECORD_COLUMNS = list(EmployeeRecord.model_fields.keys())


class GenerateLetterRequest(BaseModel):
    """Request body for POST /generate-letter."""
    email: List[str] = Field(default_factory=list)

    @field_validator("email", mode="before")
    @classmethod
    def null_email_as_empty(cls, v: Optional[List[str]]) -> List[str]:
        """Treat "email": null like a missing field."""
        if v is None:
            return []
        return v


class LetterResult(BaseModel):
    """Outcome for a single requested email."""
    email: str
    url: str = ""
    is_success: bool = False


class GenerateLetterResponse(BaseModel):
    """Envelope returned on success."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="Success", alias="Message")
    response: List[LetterResult] = Field(default_factory=list, alias="Response")


class ErrorResponse(BaseModel):
    """Envelope returned when letter generation fails unexpectedly."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="Internal Server Error", alias="Message")
    internal_message: str = Field(alias="InternalMessage")
