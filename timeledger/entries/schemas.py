"""Request/response schemas for the time entry API."""

from pydantic import BaseModel, Field

from timeledger.models import EpochMillis


class RegisterTimeEntryRequest(BaseModel):
    user_id: str = Field(min_length=1)
    start_time: EpochMillis
    end_time: EpochMillis
    tags: list[str] = Field(default_factory=list)
    description: str = ""


class RegisterTimeEntryResponse(BaseModel):
    time_entry_id: str
