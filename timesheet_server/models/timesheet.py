from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

from timesheet_server.models.wage import ShiftRecord, ShiftSplit

class TimesheetEntryCreate(BaseModel):
    """Model for creating a timesheet entry (manual entry or import)"""
    employee_id: Optional[int] = None
    employee_name: Optional[str] = None   # looked up from employee_id when missing
    organization_id: Optional[str] = None
    clock_in_date: str   # YYYY-MM-DD
    clock_in_time: str   # HH:MM or HH:MM:SS
    clock_out_date: Optional[str] = None
    clock_out_time: Optional[str] = None
    manager_note: Optional[str] = None

class ClockOutRequest(BaseModel):
    clock_out_date: str
    clock_out_time: str
    manager_note: Optional[str] = None

class TimesheetList(BaseModel):
    total_entries: int
    entries: List[ShiftRecord]

class WageSettingsUpdate(BaseModel):
    """Partial wage settings update, HH:MM accepted for times"""
    model_config = ConfigDict(allow_inf_nan=False)

    organization_id: Optional[str] = None
    morning_start_time: Optional[str] = None
    morning_end_time: Optional[str] = None
    night_start_time: Optional[str] = None
    night_end_time: Optional[str] = None
    morning_wage_rate: Optional[float] = Field(default=None, ge=0)
    night_wage_rate: Optional[float] = Field(default=None, ge=0)
    default_flat_wage_rate: Optional[float] = Field(default=None, ge=0)
    create_if_missing: bool = False

class SplitPreviewRequest(BaseModel):
    """Ad-hoc shift to split and price without saving"""
    organization_id: Optional[str] = None
    clock_in_date: str
    clock_in_time: str
    clock_out_date: str
    clock_out_time: str
    morning_wage_rate: Optional[float] = None   # employee override
    night_wage_rate: Optional[float] = None

class SplitPreviewResponse(BaseModel):
    split: ShiftSplit
    amount_split: Optional[float] = None
    amount_flat: Optional[float] = None
    pricing_error: Optional[str] = None
