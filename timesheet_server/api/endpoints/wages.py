import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from pydantic import ValidationError
from timesheet_server.core.errors import ConfigNotFoundError, EngineError, ParseError, RecordNotFoundError
from timesheet_server.core.security import admin_auth
from timesheet_server.models.timesheet import SplitPreviewRequest, SplitPreviewResponse, WageSettingsUpdate
from timesheet_server.models.wage import (
    RecalculateOneResult, RecalculateOptions, RunSummary, ShiftRecord, WageWindowConfig,
)
from timesheet_server.services.pricing_service import PricingMode, price_shift
from timesheet_server.services.recalculation_service import RecalculationAlreadyRunning, RecalculationService
from timesheet_server.services.split_service import split_shift
from timesheet_server.services.timesheet_repository import TimesheetRepository

router = APIRouter()
logger = logging.getLogger(__name__)

repository = TimesheetRepository()
recalculation_service = RecalculationService(repository)

@router.get("/wages/settings", response_model=WageWindowConfig)
async def get_wage_settings(organization_id: Optional[str] = None):
    """Wage windows and rates in effect for an organization"""
    try:
        return repository.get_wage_config(organization_id)
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.put("/admin/wages/settings", response_model=WageWindowConfig, dependencies=[Depends(admin_auth)])
async def update_wage_settings(update: WageSettingsUpdate):
    """Partially update wage settings, creating them from the defaults if asked"""
    settings = update.model_dump(exclude={"organization_id", "create_if_missing"}, exclude_none=True)
    try:
        return repository.upsert_wage_settings(update.organization_id, settings, update.create_if_missing)
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid wage settings: {e}")

@router.post("/wages/split-preview", response_model=SplitPreviewResponse)
async def preview_split(request: SplitPreviewRequest):
    """Split and price a shift against the current settings without saving it"""
    try:
        config = repository.get_wage_config(request.organization_id)
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    config = config.with_employee_rates(request.morning_wage_rate, request.night_wage_rate)
    shift = ShiftRecord(
        id=0,
        organization_id=request.organization_id,
        clock_in_date=request.clock_in_date,
        clock_in_time=request.clock_in_time,
        clock_out_date=request.clock_out_date,
        clock_out_time=request.clock_out_time,
    )

    try:
        split = split_shift(shift, config)
    except EngineError as e:
        raise HTTPException(status_code=400, detail=f"{e.kind}: {e}")

    response = SplitPreviewResponse(split=split)
    try:
        response.amount_split = price_shift(split, config, PricingMode.SPLIT)
        if config.flat_rate is not None:
            response.amount_flat = price_shift(split, config, PricingMode.FLAT)
    except EngineError as e:
        response.pricing_error = str(e)
    return response

# Sync handlers run in the threadpool, so a cancel request can reach a running batch

@router.post("/admin/wages/recalculate", response_model=RunSummary, dependencies=[Depends(admin_auth)])
def recalculate_all(options: RecalculateOptions):
    """Recalculate morning/night hours and amounts for every eligible entry"""
    try:
        return recalculation_service.recalculate_all(options)
    except RecalculationAlreadyRunning as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error recalculating timesheet hours: {e}")
        raise HTTPException(status_code=500, detail="Failed to recalculate timesheet hours")

@router.post("/admin/wages/recalculate/cancel", dependencies=[Depends(admin_auth)])
def cancel_recalculation(organization_id: Optional[str] = None):
    cancelled = recalculation_service.cancel(organization_id)
    return {
        "cancelled": cancelled,
        "message": "Cancellation requested" if cancelled else "No recalculation is running",
    }

@router.post("/admin/wages/recalculate/{entry_id}", response_model=RecalculateOneResult,
             dependencies=[Depends(admin_auth)])
def recalculate_one(entry_id: int):
    """Recalculate a single entry, even if it was already processed"""
    try:
        return recalculation_service.recalculate_one(entry_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error recalculating entry {entry_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to recalculate entry {entry_id}")
