from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from timesheet_server.core.config import ServerConfig
from timesheet_server.core.database import init_database, seed_test_data
from timesheet_server.models.wage import ShiftRecord, WageWindowConfig
from timesheet_server.services.timesheet_repository import TimesheetRepository

ADMIN_SECRET = "test-admin-secret"


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Empty schema in a throwaway database"""
    path = str(tmp_path / "timesheets.db")
    monkeypatch.setattr(ServerConfig, "DATABASE_PATH", path)
    init_database(path)
    return path


@pytest.fixture
def repository(db_path):
    """Repository with the global default wage settings and test employees"""
    seed_test_data(db_path)
    return TimesheetRepository(db_path)


@pytest.fixture
def client(db_path, monkeypatch):
    monkeypatch.setattr(ServerConfig, "SEED_TEST_DATA", True)
    monkeypatch.setattr(ServerConfig, "ADMIN_SECRET", ADMIN_SECRET)
    # TestClient requests come from host "testclient"
    monkeypatch.setattr(ServerConfig, "LOCALHOST_ONLY_ADMIN", False)

    from timesheet_server.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"X-Admin-Secret": ADMIN_SECRET}


@pytest.fixture
def full_day_config():
    """Morning 06:00-17:00, night 17:00-06:00: every minute of the day is covered"""
    return WageWindowConfig(
        morning_start="06:00:00", morning_end="17:00:00",
        night_start="17:00:00", night_end="06:00:00",
        morning_rate=17.0, night_rate=20.0, flat_rate=20.0,
    )


@pytest.fixture
def default_config():
    """The seeded defaults: night window ends at 01:00, leaving 01:00-06:00 uncovered"""
    return WageWindowConfig(
        morning_start="06:00", morning_end="17:00",
        night_start="17:00", night_end="01:00",
        morning_rate=17.0, night_rate=20.0, flat_rate=20.0,
    )


@pytest.fixture
def make_shift():
    """Build a ShiftRecord from a start and a duration in minutes"""
    def _make(record_id=1, start="2024-03-04 08:00", minutes=None, **fields):
        clock_in = datetime.strptime(start, "%Y-%m-%d %H:%M")
        data = {
            "id": record_id,
            "employee_name": f"Employee {record_id}",
            "clock_in_date": clock_in.strftime("%Y-%m-%d"),
            "clock_in_time": clock_in.strftime("%H:%M:%S"),
        }
        if minutes is not None:
            clock_out = clock_in + timedelta(minutes=minutes)
            data["clock_out_date"] = clock_out.strftime("%Y-%m-%d")
            data["clock_out_time"] = clock_out.strftime("%H:%M:%S")
            data["total_hours"] = round(minutes / 60, 2)
        data.update(fields)
        return ShiftRecord(**data)
    return _make
