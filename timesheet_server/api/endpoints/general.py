import logging

from fastapi import APIRouter
from timesheet_server.core.config import ServerConfig
from timesheet_server.core.database import get_db

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/")
async def root():
    return {
        "message": ServerConfig.APP_NAME,
        "version": ServerConfig.APP_VERSION,
        "description": ServerConfig.APP_DESCRIPTION,
        "status": "running",
        "https_enabled": ServerConfig.use_https(),
    }

@router.get("/health")
async def health_check():
    """Health check including database reachability"""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM timesheet_entries")
            entry_count = cursor.fetchone()[0]
        return {"status": "healthy", "database": "connected", "timesheet_entries": entry_count}
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {"status": "unhealthy", "database": "error", "error": str(e)}
