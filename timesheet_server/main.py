import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from timesheet_server.core.config import ServerConfig, WageDefaults
from timesheet_server.core.database import init_database, seed_test_data
from timesheet_server.api.endpoints import general, timesheets, wages

# Configure logging
log_level = getattr(logging, ServerConfig.LOG_LEVEL.upper())
logging.basicConfig(level=log_level)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    logger.info("=" * 60)
    logger.info(f"🚀 {ServerConfig.APP_NAME.upper()}")
    logger.info(f"Version: {ServerConfig.APP_VERSION}")
    logger.info("=" * 60)

    init_database()

    if ServerConfig.SEED_TEST_DATA:
        seed_test_data()

    logger.info(f"Database: {ServerConfig.DATABASE_PATH}")
    logger.info(f"HTTPS: {'ENABLED' if ServerConfig.use_https() else 'DISABLED'}")
    logger.info(f"Default windows: morning {WageDefaults.MORNING_START_TIME}-{WageDefaults.MORNING_END_TIME}, "
                f"night {WageDefaults.NIGHT_START_TIME}-{WageDefaults.NIGHT_END_TIME}")
    logger.info("=" * 60)
    logger.info("Timesheet Wage Server started successfully!")

    yield  # Server is running

    logger.info("Shutting down Timesheet Wage Server...")


app = FastAPI(
    title=ServerConfig.APP_NAME,
    version=ServerConfig.APP_VERSION,
    description=ServerConfig.APP_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs" if ServerConfig.ENABLE_API_DOCS else None,
    redoc_url="/redoc" if ServerConfig.ENABLE_API_DOCS else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ServerConfig.CORS_ORIGINS,
    allow_credentials=ServerConfig.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(general.router, tags=["General"])
app.include_router(timesheets.router, tags=["Timesheets"])
app.include_router(wages.router, tags=["Wages"])
