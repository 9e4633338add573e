from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.domain.contract_state import ExtensionStatus


class ExtensionRequest(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contract_id: int
    requested_by_party_id: int
    current_end_date: date
    requested_end_date: date
    note: str | None = None
    status: ExtensionStatus
    decision_note: str | None = None
    created_at: datetime
    decided_at: datetime | None = None


class ExtensionCreate(BaseModel):
    new_end_date: date
    note: str | None = Field(None, max_length=2000)


class ExtensionDecision(BaseModel):
    action: Literal["accept", "decline"]
    note: str | None = Field(None, max_length=2000)
