import sqlite3
from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Optional
from timesheet_server.core.config import ServerConfig, WageDefaults

logger = logging.getLogger(__name__)

@contextmanager
def get_db(db_path: Optional[str] = None):
    conn = sqlite3.connect(db_path or ServerConfig.DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    except Exception as e:
        conn.rollback()
        raise e
    finally:
        conn.close()

def init_database(db_path: Optional[str] = None):
    with get_db(db_path) as conn:
        cursor = conn.cursor()

        # Employees carry optional per-employee wage overrides
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS employees (
                employee_id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                organization_id TEXT,
                morning_wage_rate REAL,
                night_wage_rate REAL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                active BOOLEAN DEFAULT TRUE
            )
        ''')

        # One row per shift, split outputs nullable until computed
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS timesheet_entries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                employee_id INTEGER,
                employee_name TEXT NOT NULL,
                organization_id TEXT,
                clock_in_date TEXT NOT NULL,
                clock_in_time TEXT NOT NULL,
                clock_out_date TEXT,
                clock_out_time TEXT,
                total_hours REAL NOT NULL DEFAULT 0,
                morning_hours REAL,
                night_hours REAL,
                total_card_amount_split REAL,
                total_card_amount_flat REAL,
                is_split_calculation BOOLEAN NOT NULL DEFAULT FALSE,
                manager_note TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (employee_id) REFERENCES employees (employee_id)
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_timesheet_recalc
            ON timesheet_entries (organization_id, is_split_calculation, clock_out_time)
        ''')

        # NULL organization_id is the global default row
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS wage_settings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                organization_id TEXT UNIQUE,
                morning_start_time TEXT NOT NULL,
                morning_end_time TEXT NOT NULL,
                night_start_time TEXT NOT NULL,
                night_end_time TEXT NOT NULL,
                morning_wage_rate REAL,
                night_wage_rate REAL,
                default_flat_wage_rate REAL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        conn.commit()
        logger.info("Database initialized successfully")

def seed_test_data(db_path: Optional[str] = None):
    """Add a global wage settings row and test employees for development"""
    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("SELECT COUNT(*) FROM wage_settings WHERE organization_id IS NULL")
        if cursor.fetchone()[0] == 0:
            cursor.execute('''
                INSERT INTO wage_settings
                (organization_id, morning_start_time, morning_end_time, night_start_time, night_end_time,
                 morning_wage_rate, night_wage_rate, default_flat_wage_rate, updated_at)
                VALUES (NULL, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (WageDefaults.MORNING_START_TIME, WageDefaults.MORNING_END_TIME,
                  WageDefaults.NIGHT_START_TIME, WageDefaults.NIGHT_END_TIME,
                  WageDefaults.MORNING_WAGE_RATE, WageDefaults.NIGHT_WAGE_RATE,
                  WageDefaults.FLAT_WAGE_RATE, datetime.now().isoformat()))
            logger.info("Added global default wage settings")

        cursor.execute("SELECT COUNT(*) FROM employees")
        count = cursor.fetchone()[0]

        if count > 0:
            logger.info(f"Database already has {count} employees")
            conn.commit()
            return

        test_employees = [
            (1, "John Doe", "default", None, None, True),
            (2, "Jane Smith", "default", 18.5, 22.0, True),
            (3, "Bob Johnson", "default", None, None, True),
        ]

        cursor.executemany('''
            INSERT INTO employees (employee_id, name, organization_id, morning_wage_rate, night_wage_rate, active)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', test_employees)

        conn.commit()
        logger.info(f"Added {len(test_employees)} test employees to database")
