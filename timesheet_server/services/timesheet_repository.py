import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from timesheet_server.core.config import WageDefaults
from timesheet_server.core.database import get_db
from timesheet_server.core.errors import ConfigNotFoundError, RecordNotFoundError, StorageError
from timesheet_server.models.timesheet import TimesheetEntryCreate
from timesheet_server.models.wage import RecordFailure, ShiftPatch, ShiftRecord, WageWindowConfig
from timesheet_server.services.split_service import minutes_to_hours, shift_duration_minutes
from timesheet_server.services.time_utils import normalize_time, parse_date

logger = logging.getLogger(__name__)

# wage_settings column -> WageWindowConfig field
WAGE_SETTINGS_FIELDS = {
    "morning_start_time": "morning_start",
    "morning_end_time": "morning_end",
    "night_start_time": "night_start",
    "night_end_time": "night_end",
    "morning_wage_rate": "morning_rate",
    "night_wage_rate": "night_rate",
    "default_flat_wage_rate": "flat_rate",
}

TIME_COLUMNS = ("morning_start_time", "morning_end_time", "night_start_time", "night_end_time")

ENTRY_SELECT = '''
    SELECT te.id, te.employee_id, te.employee_name, te.organization_id,
           te.clock_in_date, te.clock_in_time, te.clock_out_date, te.clock_out_time,
           te.total_hours, te.morning_hours, te.night_hours,
           te.total_card_amount_split, te.total_card_amount_flat, te.is_split_calculation,
           e.morning_wage_rate, e.night_wage_rate
    FROM timesheet_entries te
    LEFT JOIN employees e ON te.employee_id = e.employee_id
'''

def _row_to_record(row: sqlite3.Row) -> ShiftRecord:
    data = dict(row)
    data["is_split_calculation"] = bool(data["is_split_calculation"])
    data["total_hours"] = data["total_hours"] or 0.0
    return ShiftRecord(**data)

def _row_to_config(row: sqlite3.Row, organization_id: Optional[str]) -> WageWindowConfig:
    data = {field: row[column] for column, field in WAGE_SETTINGS_FIELDS.items()}
    return WageWindowConfig(organization_id=organization_id, **data)

class TimesheetRepository:
    """SQLite storage for timesheet entries and wage settings"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    # Wage settings

    def _find_settings_row(self, cursor, organization_id: Optional[str]):
        if organization_id is None:
            cursor.execute("SELECT * FROM wage_settings WHERE organization_id IS NULL ORDER BY id LIMIT 1")
        else:
            cursor.execute("SELECT * FROM wage_settings WHERE organization_id = ?", (organization_id,))
        return cursor.fetchone()

    def get_wage_config(self, organization_id: Optional[str] = None) -> WageWindowConfig:
        """Organization settings, falling back to the global default row"""
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            row = self._find_settings_row(cursor, organization_id)
            if row is None and organization_id is not None:
                row = self._find_settings_row(cursor, None)
            if row is None:
                raise ConfigNotFoundError(
                    f"No wage settings found for organization {organization_id!r}. Please configure wage settings first."
                )
            return _row_to_config(row, organization_id)

    def upsert_wage_settings(self, organization_id: Optional[str], settings: Dict[str, Any],
                             create_if_missing: bool = False) -> WageWindowConfig:
        """Apply a partial update, optionally creating the row from the global default.

        The merged settings are validated before anything is written.
        """
        changes = {k: v for k, v in settings.items() if k in WAGE_SETTINGS_FIELDS and v is not None}
        for column in TIME_COLUMNS:
            if column in changes:
                changes[column] = normalize_time(changes[column])

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            existing = self._find_settings_row(cursor, organization_id)

            if existing is None:
                if not create_if_missing:
                    raise ConfigNotFoundError(f"No wage settings for organization {organization_id!r}")
                seed = self._find_settings_row(cursor, None) if organization_id is not None else None
                merged = self._seed_values(seed)
            else:
                merged = {column: existing[column] for column in WAGE_SETTINGS_FIELDS}
            merged.update(changes)

            # Raises pydantic ValidationError on bad windows or rates
            config = WageWindowConfig(
                organization_id=organization_id,
                **{field: merged[column] for column, field in WAGE_SETTINGS_FIELDS.items()}
            )

            columns = list(WAGE_SETTINGS_FIELDS)
            values = [getattr(config, WAGE_SETTINGS_FIELDS[c]) for c in columns]
            if existing is None:
                cursor.execute(f'''
                    INSERT INTO wage_settings (organization_id, {", ".join(columns)}, updated_at)
                    VALUES (?, {", ".join("?" for _ in columns)}, ?)
                ''', [organization_id] + values + [datetime.now().isoformat()])
                logger.info(f"Created wage settings for organization {organization_id!r}")
            else:
                assignments = ", ".join(f"{c} = ?" for c in columns)
                cursor.execute(f'''
                    UPDATE wage_settings SET {assignments}, updated_at = ? WHERE id = ?
                ''', values + [datetime.now().isoformat(), existing["id"]])
                logger.info(f"Updated wage settings for organization {organization_id!r}: {sorted(changes)}")

            conn.commit()
            return config

    @staticmethod
    def _seed_values(seed) -> Dict[str, Any]:
        if seed is not None:
            return {column: seed[column] for column in WAGE_SETTINGS_FIELDS}
        return {
            "morning_start_time": WageDefaults.MORNING_START_TIME,
            "morning_end_time": WageDefaults.MORNING_END_TIME,
            "night_start_time": WageDefaults.NIGHT_START_TIME,
            "night_end_time": WageDefaults.NIGHT_END_TIME,
            "morning_wage_rate": WageDefaults.MORNING_WAGE_RATE,
            "night_wage_rate": WageDefaults.NIGHT_WAGE_RATE,
            "default_flat_wage_rate": WageDefaults.FLAT_WAGE_RATE,
        }

    # Timesheet entries

    def get_entry(self, entry_id: int) -> ShiftRecord:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(ENTRY_SELECT + " WHERE te.id = ?", (entry_id,))
            row = cursor.fetchone()
            if row is None:
                raise RecordNotFoundError(f"Timesheet entry {entry_id} not found")
            return _row_to_record(row)

    def list_entries(self, organization_id: Optional[str] = None, employee_id: Optional[int] = None,
                     start_date: Optional[str] = None, end_date: Optional[str] = None,
                     limit: int = 500) -> List[ShiftRecord]:
        where_conditions = []
        params: List[Any] = []

        if organization_id is not None:
            where_conditions.append("te.organization_id = ?")
            params.append(organization_id)

        if employee_id is not None:
            where_conditions.append("te.employee_id = ?")
            params.append(employee_id)

        if start_date:
            where_conditions.append("te.clock_in_date >= ?")
            params.append(start_date)

        if end_date:
            where_conditions.append("te.clock_in_date <= ?")
            params.append(end_date)

        where_clause = "WHERE " + " AND ".join(where_conditions) if where_conditions else ""
        params.append(limit)

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(f"{ENTRY_SELECT} {where_clause} ORDER BY te.clock_in_date DESC, te.clock_in_time DESC LIMIT ?",
                           params)
            return [_row_to_record(row) for row in cursor.fetchall()]

    def list_recalculation_candidates(self, organization_id: Optional[str] = None,
                                      include_processed: bool = False) -> List[ShiftRecord]:
        """Completed shifts, only unprocessed ones unless include_processed"""
        where_conditions = ["te.clock_out_date IS NOT NULL", "te.clock_out_time IS NOT NULL"]
        params: List[Any] = []

        if organization_id is not None:
            where_conditions.append("te.organization_id = ?")
            params.append(organization_id)

        if not include_processed:
            where_conditions.append("te.is_split_calculation = FALSE")

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(f"{ENTRY_SELECT} WHERE {' AND '.join(where_conditions)} ORDER BY te.id", params)
            return [_row_to_record(row) for row in cursor.fetchall()]

    def create_entry(self, entry: TimesheetEntryCreate) -> ShiftRecord:
        parse_date(entry.clock_in_date)
        if entry.clock_out_date:
            parse_date(entry.clock_out_date)
        clock_in_time = normalize_time(entry.clock_in_time)
        clock_out_time = normalize_time(entry.clock_out_time) if entry.clock_out_time else None

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()

            employee_name = entry.employee_name
            organization_id = entry.organization_id
            if entry.employee_id is not None:
                cursor.execute("SELECT name, organization_id FROM employees WHERE employee_id = ?",
                               (entry.employee_id,))
                employee = cursor.fetchone()
                if employee is None:
                    raise RecordNotFoundError(f"Employee {entry.employee_id} not found")
                employee_name = employee_name or employee["name"]
                organization_id = organization_id or employee["organization_id"]

            total_hours = 0.0
            if entry.clock_out_date and clock_out_time:
                draft = ShiftRecord(id=0, clock_in_date=entry.clock_in_date, clock_in_time=clock_in_time,
                                    clock_out_date=entry.clock_out_date, clock_out_time=clock_out_time)
                total_hours = minutes_to_hours(shift_duration_minutes(draft))

            cursor.execute('''
                INSERT INTO timesheet_entries
                (employee_id, employee_name, organization_id, clock_in_date, clock_in_time,
                 clock_out_date, clock_out_time, total_hours, is_split_calculation, manager_note)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, FALSE, ?)
            ''', (entry.employee_id, employee_name or "", organization_id, entry.clock_in_date, clock_in_time,
                  entry.clock_out_date, clock_out_time, total_hours, entry.manager_note))
            entry_id = cursor.lastrowid
            conn.commit()

        logger.info(f"Created timesheet entry {entry_id} for {employee_name} on {entry.clock_in_date}")
        return self.get_entry(entry_id)

    def clock_out_entry(self, entry_id: int, clock_out_date: str, clock_out_time: str,
                        manager_note: Optional[str] = None) -> ShiftRecord:
        """Close an open shift; the entry becomes unprocessed again"""
        parse_date(clock_out_date)
        record = self.get_entry(entry_id)
        closed = record.model_copy(update={
            "clock_out_date": clock_out_date,
            "clock_out_time": normalize_time(clock_out_time),
        })
        total_hours = minutes_to_hours(shift_duration_minutes(closed))

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE timesheet_entries
                SET clock_out_date = ?, clock_out_time = ?, total_hours = ?,
                    is_split_calculation = FALSE, manager_note = COALESCE(?, manager_note), updated_at = ?
                WHERE id = ?
            ''', (closed.clock_out_date, closed.clock_out_time, total_hours, manager_note, datetime.now().isoformat(), entry_id))
            conn.commit()

        logger.info(f"Clocked out entry {entry_id} at {closed.clock_out_date} {closed.clock_out_time} ({total_hours}h)")
        return self.get_entry(entry_id)

    # Recalculation writes

    @staticmethod
    def _apply_patch(cursor, patch: ShiftPatch):
        cursor.execute('''
            UPDATE timesheet_entries
            SET morning_hours = ?, night_hours = ?, total_card_amount_split = ?,
                total_card_amount_flat = ?, is_split_calculation = ?, updated_at = ?
            WHERE id = ?
        ''', (patch.morning_hours, patch.night_hours, patch.total_card_amount_split,
              patch.total_card_amount_flat, patch.is_split_calculation, datetime.now().isoformat(), patch.id))
        if cursor.rowcount == 0:
            raise StorageError(f"Timesheet entry {patch.id} no longer exists")

    def update_entry(self, patch: ShiftPatch):
        try:
            with get_db(self.db_path) as conn:
                self._apply_patch(conn.cursor(), patch)
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update entry {patch.id}: {e}")

    def update_entries(self, patches: List[ShiftPatch]) -> List[RecordFailure]:
        """Batched update; failed rows are reported, the rest are committed"""
        failures = []
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            for patch in patches:
                try:
                    cursor.execute("SAVEPOINT patch")
                    self._apply_patch(cursor, patch)
                    cursor.execute("RELEASE SAVEPOINT patch")
                except (StorageError, sqlite3.Error) as e:
                    cursor.execute("ROLLBACK TO SAVEPOINT patch")
                    cursor.execute("RELEASE SAVEPOINT patch")
                    failures.append(RecordFailure(record_id=patch.id, error_kind=StorageError.kind, message=str(e)))
            conn.commit()
        return failures
