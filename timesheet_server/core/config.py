import os
from typing import List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

def parse_list_env(env_var: str, default: List[str] = None) -> List[str]:
    """Parse comma-separated environment variable into list"""
    if default is None:
        default = []

    value = os.getenv(env_var, "")
    if not value.strip():
        return default

    return [item.strip() for item in value.split(",") if item.strip()]

def parse_bool_env(env_var: str, default: bool = False) -> bool:
    """Parse boolean environment variable"""
    return os.getenv(env_var, str(default)).lower() in ("true", "1", "yes", "on")

def parse_float_env(env_var: str, default: float) -> float:
    """Parse float environment variable, keeping the default on bad input"""
    value = os.getenv(env_var)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default

class WageDefaults:
    """Seed values for wage settings when an organization has none yet"""

    # Shift windows (HH:MM:SS, end before start wraps past midnight)
    MORNING_START_TIME = os.getenv("DEFAULT_MORNING_START_TIME", "06:00:00")
    MORNING_END_TIME = os.getenv("DEFAULT_MORNING_END_TIME", "17:00:00")
    NIGHT_START_TIME = os.getenv("DEFAULT_NIGHT_START_TIME", "17:00:00")
    NIGHT_END_TIME = os.getenv("DEFAULT_NIGHT_END_TIME", "01:00:00")

    # Rates per hour
    MORNING_WAGE_RATE = parse_float_env("DEFAULT_MORNING_WAGE_RATE", 17.0)
    NIGHT_WAGE_RATE = parse_float_env("DEFAULT_NIGHT_WAGE_RATE", 20.0)
    FLAT_WAGE_RATE = parse_float_env("DEFAULT_FLAT_WAGE_RATE", 20.0)

    # Stored vs computed total_hours difference worth reporting
    TOTAL_HOURS_TOLERANCE = parse_float_env("TOTAL_HOURS_TOLERANCE", 0.01)

class ServerConfig:
    """Server Configuration from Environment"""

    # Server settings
    HOST = os.getenv("TIMESHEET_HOST", "0.0.0.0")
    PORT = int(os.getenv("TIMESHEET_PORT", "8000"))
    LOG_LEVEL = os.getenv("TIMESHEET_LOG_LEVEL", "info")

    # Optional TLS, both files must exist
    SSL_CERT_FILE = os.getenv("SSL_CERT_FILE", "")
    SSL_KEY_FILE = os.getenv("SSL_KEY_FILE", "")

    # Security settings
    ADMIN_SECRET = os.getenv("TIMESHEET_ADMIN_SECRET", "your-secret-key-here")
    LOCALHOST_ONLY_ADMIN = parse_bool_env("LOCALHOST_ONLY_ADMIN", True)

    # Database settings
    DATABASE_PATH = os.getenv("DATABASE_PATH", "timesheets.db")

    # Development settings
    SEED_TEST_DATA = parse_bool_env("SEED_TEST_DATA", True)
    ENABLE_API_DOCS = parse_bool_env("ENABLE_API_DOCS", True)

    # CORS settings
    CORS_ORIGINS = parse_list_env("CORS_ORIGINS", ["*"])
    CORS_ALLOW_CREDENTIALS = parse_bool_env("CORS_ALLOW_CREDENTIALS", True)

    # App metadata
    APP_NAME = os.getenv("APP_NAME", "Timesheet Wage Server")
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    APP_DESCRIPTION = os.getenv("APP_DESCRIPTION", "Timesheets with morning/night wage split calculation")

    @classmethod
    def use_https(cls) -> bool:
        return bool(cls.SSL_CERT_FILE and cls.SSL_KEY_FILE
                    and os.path.exists(cls.SSL_CERT_FILE) and os.path.exists(cls.SSL_KEY_FILE))
