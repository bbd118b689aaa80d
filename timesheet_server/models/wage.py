from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List

from timesheet_server.core.errors import ParseError
from timesheet_server.services.time_utils import normalize_time, to_minutes

class WageWindowConfig(BaseModel):
    """Per-organization wage windows and rates"""
    model_config = ConfigDict(allow_inf_nan=False)

    organization_id: Optional[str] = None
    morning_start: str   # HH:MM:SS
    morning_end: str
    night_start: str
    night_end: str
    morning_rate: Optional[float] = Field(default=None, ge=0)
    night_rate: Optional[float] = Field(default=None, ge=0)
    flat_rate: Optional[float] = Field(default=None, ge=0)

    @field_validator("morning_start", "morning_end", "night_start", "night_end", mode="before")
    @classmethod
    def _normalize_boundary(cls, value):
        try:
            return normalize_time(value)
        except ParseError as e:
            raise ValueError(str(e))

    @model_validator(mode="after")
    def _windows_do_not_overlap(self):
        # Import here to avoid circular imports
        from timesheet_server.services.split_service import overlap_minutes

        shared = overlap_minutes(
            self.morning_start_minutes, self.morning_end_minutes,
            self.night_start_minutes, self.night_end_minutes,
        )
        if shared > 0:
            raise ValueError(
                f"Morning window {self.morning_start}-{self.morning_end} overlaps "
                f"night window {self.night_start}-{self.night_end} by {shared} minutes"
            )
        return self

    @property
    def morning_start_minutes(self) -> int:
        return to_minutes(self.morning_start)

    @property
    def morning_end_minutes(self) -> int:
        return to_minutes(self.morning_end)

    @property
    def night_start_minutes(self) -> int:
        return to_minutes(self.night_start)

    @property
    def night_end_minutes(self) -> int:
        return to_minutes(self.night_end)

    def with_employee_rates(self, morning_rate: Optional[float] = None,
                            night_rate: Optional[float] = None) -> "WageWindowConfig":
        """Copy with employee-specific rates replacing the organization rates"""
        update = {}
        if morning_rate is not None:
            update["morning_rate"] = morning_rate
        if night_rate is not None:
            update["night_rate"] = night_rate
        return self.model_copy(update=update) if update else self

class ShiftRecord(BaseModel):
    """A timesheet_entries row as seen by the wage engine"""
    id: int
    employee_id: Optional[int] = None
    employee_name: str = ""
    organization_id: Optional[str] = None
    clock_in_date: str   # YYYY-MM-DD
    clock_in_time: str   # HH:MM:SS[.ffffff]
    clock_out_date: Optional[str] = None
    clock_out_time: Optional[str] = None
    total_hours: float = 0.0
    morning_hours: Optional[float] = None
    night_hours: Optional[float] = None
    total_card_amount_split: Optional[float] = None
    total_card_amount_flat: Optional[float] = None
    is_split_calculation: bool = False
    morning_wage_rate: Optional[float] = None   # employee override
    night_wage_rate: Optional[float] = None     # employee override

    @property
    def is_complete(self) -> bool:
        return bool(self.clock_out_date) and bool(self.clock_out_time)

class ShiftSplit(BaseModel):
    """Hours of one shift per wage bucket"""
    morning_hours: float = 0.0
    night_hours: float = 0.0
    unassigned_hours: float = 0.0
    total_hours: float = 0.0

class ShiftPatch(BaseModel):
    """Fields written back to a timesheet entry after recalculation"""
    id: int
    morning_hours: float
    night_hours: float
    total_card_amount_split: float
    total_card_amount_flat: Optional[float] = None
    is_split_calculation: bool = True

class RecordFailure(BaseModel):
    record_id: int
    error_kind: str
    message: str

class TotalMismatch(BaseModel):
    """Stored total_hours disagrees with the clock-in/out duration"""
    record_id: int
    stored_hours: float
    computed_hours: float

class RecalculateOptions(BaseModel):
    organization_id: Optional[str] = None
    force: bool = False

class RunSummary(BaseModel):
    """Outcome of one batch recalculation"""
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    unassigned_hours_total: float = 0.0
    failures: List[RecordFailure] = []
    mismatches: List[TotalMismatch] = []

class RecalculateOneResult(BaseModel):
    record_id: int
    success: bool
    split: Optional[ShiftSplit] = None
    amount_split: Optional[float] = None
    amount_flat: Optional[float] = None
    error_kind: Optional[str] = None
    message: str = ""
