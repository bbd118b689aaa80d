"""
Batch and single-entry recalculation of morning/night hours and wage amounts.

``recalculate_records`` does the per-record work over records it is handed;
``RecalculationService`` wires it to the repository and keeps track of the
active run per organization so an operator can cancel it.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterable, Optional

from timesheet_server.core.config import WageDefaults
from timesheet_server.core.errors import EngineError
from timesheet_server.models.wage import (
    RecalculateOneResult, RecalculateOptions, RecordFailure, RunSummary,
    ShiftPatch, ShiftRecord, ShiftSplit, TotalMismatch, WageWindowConfig,
)
from timesheet_server.services.pricing_service import PricingMode, price_shift
from timesheet_server.services.split_service import round_half_up, split_shift
from timesheet_server.services.timesheet_repository import TimesheetRepository

logger = logging.getLogger(__name__)

class RecordLocks:
    """One lock per record id, so recomputes of the same entry never interleave"""

    def __init__(self):
        self._guard = threading.Lock()
        # record id -> [lock, holders and waiters]
        self._locks: Dict[int, list] = {}

    @contextmanager
    def hold(self, record_id: int):
        with self._guard:
            entry = self._locks.setdefault(record_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[record_id]

    def tracked(self) -> int:
        """Record ids currently held or waited on"""
        with self._guard:
            return len(self._locks)

def compute_patch(record: ShiftRecord, config: WageWindowConfig):
    """Split and price one record. Returns (patch, split) without persisting."""
    rates = config.with_employee_rates(record.morning_wage_rate, record.night_wage_rate)
    split = split_shift(record, rates)
    amount_split = price_shift(split, rates, PricingMode.SPLIT)
    amount_flat = price_shift(split, rates, PricingMode.FLAT) if rates.flat_rate is not None else None

    patch = ShiftPatch(
        id=record.id,
        morning_hours=split.morning_hours,
        night_hours=split.night_hours,
        total_card_amount_split=amount_split,
        total_card_amount_flat=amount_flat,
    )
    return patch, split

def _check_stored_total(record: ShiftRecord, split: ShiftSplit) -> Optional[TotalMismatch]:
    if abs((record.total_hours or 0.0) - split.total_hours) > WageDefaults.TOTAL_HOURS_TOLERANCE:
        return TotalMismatch(record_id=record.id, stored_hours=record.total_hours or 0.0,
                             computed_hours=split.total_hours)
    return None

def recalculate_records(records: Iterable[ShiftRecord], config: WageWindowConfig,
                        persist: Callable[[ShiftPatch], None], options: RecalculateOptions,
                        cancel_event: Optional[threading.Event] = None,
                        locks: Optional[RecordLocks] = None,
                        config_for: Optional[Callable[[Optional[str]], WageWindowConfig]] = None) -> RunSummary:
    """Split, price and persist each record, collecting failures instead of stopping.

    ``config_for`` resolves the settings of each record's organization; without
    it every record is priced with ``config``.

    Only EngineError subclasses count as per-record failures; anything else is
    a systemic error and propagates.
    """
    summary = RunSummary()
    locks = locks or RecordLocks()
    seen = set()
    unassigned_total = 0.0

    for record in records:
        if cancel_event is not None and cancel_event.is_set():
            summary.cancelled = True
            logger.warning(f"Recalculation cancelled after {summary.processed} records")
            break

        if record.id in seen:
            continue
        seen.add(record.id)

        if record.is_split_calculation and not options.force:
            summary.skipped += 1
            continue

        summary.processed += 1
        try:
            record_config = config_for(record.organization_id) if config_for else config
            with locks.hold(record.id):
                patch, split = compute_patch(record, record_config)
                persist(patch)
        except EngineError as e:
            summary.failed += 1
            summary.failures.append(RecordFailure(record_id=record.id, error_kind=e.kind, message=str(e)))
            logger.error(f"Failed to recalculate entry {record.id}: {e.kind}: {e}")
            continue

        summary.succeeded += 1
        unassigned_total += split.unassigned_hours
        if split.unassigned_hours > 0:
            logger.warning(f"Entry {record.id}: {split.unassigned_hours}h outside configured wage windows")

        mismatch = _check_stored_total(record, split)
        if mismatch:
            summary.mismatches.append(mismatch)
            logger.warning(f"Entry {record.id}: stored total {mismatch.stored_hours}h, "
                           f"clock times give {mismatch.computed_hours}h")

        logger.info(f"Updated entry {record.id}: M:{patch.morning_hours}h N:{patch.night_hours}h "
                    f"Split:{patch.total_card_amount_split} Flat:{patch.total_card_amount_flat}")

    summary.unassigned_hours_total = round_half_up(unassigned_total)
    return summary

class RecalculationAlreadyRunning(Exception):
    pass

class RecalculationService:
    """Runs recalculations against the repository, one active batch per organization"""

    def __init__(self, repository: TimesheetRepository, locks: Optional[RecordLocks] = None):
        self.repository = repository
        self.locks = locks or RecordLocks()
        self._runs_guard = threading.Lock()
        self._active_runs: Dict[Optional[str], threading.Event] = {}

    def _overlaps_active_run(self, organization_id: Optional[str]) -> bool:
        """A run without an organization covers all of them and overlaps any other run"""
        if not self._active_runs:
            return False
        return organization_id is None or None in self._active_runs or organization_id in self._active_runs

    def is_running(self, organization_id: Optional[str]) -> bool:
        with self._runs_guard:
            return organization_id in self._active_runs

    def cancel(self, organization_id: Optional[str]) -> bool:
        """Ask the active run to stop after its in-flight record"""
        with self._runs_guard:
            event = self._active_runs.get(organization_id)
        if event is None:
            return False
        event.set()
        logger.info(f"Cancellation requested for organization {organization_id!r}")
        return True

    def recalculate_all(self, options: RecalculateOptions) -> RunSummary:
        organization_id = options.organization_id
        event = threading.Event()
        with self._runs_guard:
            if self._overlaps_active_run(organization_id):
                raise RecalculationAlreadyRunning(
                    f"A recalculation overlapping organization {organization_id!r} is already running"
                )
            self._active_runs[organization_id] = event

        try:
            # Config and candidate reads are systemic: failures propagate
            config = self.repository.get_wage_config(organization_id)
            configs = {organization_id: config}

            def config_for(record_organization_id):
                if record_organization_id not in configs:
                    configs[record_organization_id] = self.repository.get_wage_config(record_organization_id)
                return configs[record_organization_id]

            records = self.repository.list_recalculation_candidates(
                organization_id, include_processed=options.force
            )
            logger.info(f"Recalculating {len(records)} entries for organization {organization_id!r} "
                        f"(force={options.force})")

            summary = recalculate_records(records, config, self.repository.update_entry, options,
                                          cancel_event=event, locks=self.locks, config_for=config_for)
        finally:
            with self._runs_guard:
                self._active_runs.pop(organization_id, None)

        logger.info(f"Recalculation complete: processed={summary.processed} succeeded={summary.succeeded} "
                    f"failed={summary.failed} unassigned={summary.unassigned_hours_total}h")
        return summary

    def recalculate_one(self, entry_id: int) -> RecalculateOneResult:
        """Recompute a single entry regardless of its processed flag"""
        record = self.repository.get_entry(entry_id)
        config = self.repository.get_wage_config(record.organization_id)

        try:
            with self.locks.hold(record.id):
                patch, split = compute_patch(record, config)
                self.repository.update_entry(patch)
        except EngineError as e:
            logger.error(f"Failed to recalculate entry {entry_id}: {e.kind}: {e}")
            return RecalculateOneResult(record_id=entry_id, success=False, error_kind=e.kind, message=str(e))

        logger.info(f"Recalculated entry {entry_id}: M:{split.morning_hours}h N:{split.night_hours}h")
        return RecalculateOneResult(
            record_id=entry_id,
            success=True,
            split=split,
            amount_split=patch.total_card_amount_split,
            amount_flat=patch.total_card_amount_flat,
            message=f"Entry {entry_id} recalculated",
        )
