import uvicorn
import logging
from timesheet_server.main import app # Import the FastAPI app instance
from timesheet_server.core.config import ServerConfig

# Configure logging for the main entry point
log_level = getattr(logging, ServerConfig.LOG_LEVEL.upper())
logging.basicConfig(level=log_level)
logger = logging.getLogger(__name__)

# Single process: the active recalculation runs are tracked in memory
if __name__ == "__main__":
    ssl_options = {}
    if ServerConfig.use_https():
        scheme = "https"
        ssl_options = {"ssl_keyfile": ServerConfig.SSL_KEY_FILE, "ssl_certfile": ServerConfig.SSL_CERT_FILE}
    else:
        scheme = "http"
        if ServerConfig.SSL_CERT_FILE or ServerConfig.SSL_KEY_FILE:
            logger.warning("⚠️  SSL_CERT_FILE/SSL_KEY_FILE set but not found, serving plain HTTP")

    logger.info(f"Starting {scheme.upper()} server on port {ServerConfig.PORT}...")
    logger.info(f"API Documentation: {scheme}://localhost:{ServerConfig.PORT}/docs")

    uvicorn.run(
        app,
        host=ServerConfig.HOST,
        port=ServerConfig.PORT,
        log_level=ServerConfig.LOG_LEVEL.lower(),
        **ssl_options
    )
