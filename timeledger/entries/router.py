"""FastAPI routes for registering and listing time entries."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from timeledger.entries.schemas import RegisterTimeEntryRequest, RegisterTimeEntryResponse
from timeledger.entries.service import TimeEntryService
from timeledger.errors import DomainRejectedError, TimeLedgerError
from timeledger.models import TimeEntryView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/time-entries", tags=["time-entries"])


def get_time_entry_service() -> TimeEntryService:
    """Dependency placeholder, overridden at app startup."""
    raise RuntimeError("TimeEntryService not initialized")


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_time_entry(
    request: RegisterTimeEntryRequest,
    service: TimeEntryService = Depends(get_time_entry_service),
) -> RegisterTimeEntryResponse:
    try:
        time_entry_id = await service.register(request)
    except DomainRejectedError as e:
        raise HTTPException(status_code=409, detail=str(e.reason))
    except TimeLedgerError:
        logger.exception("Registering a time entry failed")
        raise HTTPException(status_code=500, detail="Internal error")
    return RegisterTimeEntryResponse(time_entry_id=time_entry_id)


@router.get("")
async def list_time_entries(
    user_id: str,
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=0),
    sort_desc: bool = True,
    service: TimeEntryService = Depends(get_time_entry_service),
) -> list[TimeEntryView]:
    try:
        return await service.list_by_user_id(user_id, offset, limit, sort_desc)
    except TimeLedgerError:
        logger.exception("Listing time entries for %s failed", user_id)
        raise HTTPException(status_code=500, detail="Internal error")
