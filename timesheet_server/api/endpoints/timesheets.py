import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from timesheet_server.core.errors import ParseError, RecordNotFoundError
from timesheet_server.models.timesheet import ClockOutRequest, TimesheetEntryCreate, TimesheetList
from timesheet_server.models.wage import ShiftRecord
from timesheet_server.services.timesheet_repository import TimesheetRepository

router = APIRouter()
logger = logging.getLogger(__name__)

repository = TimesheetRepository()

@router.post("/timesheets", response_model=ShiftRecord, status_code=201)
async def create_timesheet_entry(entry: TimesheetEntryCreate):
    """Create a timesheet entry, open (no clock-out) or complete"""
    if bool(entry.clock_out_date) != bool(entry.clock_out_time):
        raise HTTPException(status_code=400, detail="clock_out_date and clock_out_time must be given together")
    if entry.employee_id is None and not entry.employee_name:
        raise HTTPException(status_code=400, detail="employee_id or employee_name is required")

    try:
        return repository.create_entry(entry)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/timesheets", response_model=TimesheetList)
async def list_timesheet_entries(
    organization_id: Optional[str] = None,
    employee_id: Optional[int] = None,
    start_date: Optional[str] = None,  # YYYY-MM-DD
    end_date: Optional[str] = None,    # YYYY-MM-DD
    limit: int = 500
):
    """List timesheet entries, newest first"""
    try:
        entries = repository.list_entries(organization_id, employee_id, start_date, end_date, limit)
    except Exception as e:
        logger.error(f"Error fetching timesheet entries: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch timesheet entries")
    return TimesheetList(total_entries=len(entries), entries=entries)

@router.get("/timesheets/{entry_id}", response_model=ShiftRecord)
async def get_timesheet_entry(entry_id: int):
    try:
        return repository.get_entry(entry_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/timesheets/{entry_id}/clock-out", response_model=ShiftRecord)
async def clock_out(entry_id: int, request: ClockOutRequest):
    """Close an open shift"""
    try:
        entry = repository.get_entry(entry_id)
        if entry.is_complete:
            raise HTTPException(status_code=409, detail=f"Entry {entry_id} is already clocked out")
        return repository.clock_out_entry(entry_id, request.clock_out_date, request.clock_out_time,
                                          request.manager_note)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
