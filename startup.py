import os
import sys
import logging
import traceback

import uvicorn

# Configure logging to stdout (the platform log collector reads from here)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

# Add the src directory to Python path
current_dir = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

logger.info("=" * 60)
logger.info("Clinic-Flow Backend Startup")
logger.info("=" * 60)
logger.info(f"Python version: {sys.version.split()[0]}")
logger.info(f"Source path: {src_path}")

# Log critical environment variables (without exposing secrets)
logger.info("Environment Configuration:")
logger.info(f"  PORT: {os.environ.get('PORT', '8000')}")
logger.info(f"  APP_ENV: {os.environ.get('APP_ENV', 'not set')}")
logger.info(f"  DATABASE_BACKEND: {os.environ.get('DATABASE_BACKEND', 'mongo')}")
logger.info(f"  MONGO_URI: {'set' if os.environ.get('MONGO_URI') else 'not set'}")
logger.info(f"  MONGO_DB_NAME: {os.environ.get('MONGO_DB_NAME', 'not set')}")


def main():
    try:
        logger.info("Step 1: Importing clinicflow.app...")
        try:
            from clinicflow.app import app  # noqa: F401
        except Exception as import_error:
            logger.error(f"Failed to import clinicflow.app: {import_error}")
            logger.error(traceback.format_exc())
            raise

        logger.info("Step 2: Loading application settings...")
        from clinicflow.core.config import get_settings

        settings = get_settings()
        host, port = settings.host, settings.port
        logger.info(f"  App name: {settings.app_name}")
        logger.info(f"  App environment: {settings.app_env}")
        logger.info(f"  Persistence backend: {settings.database.backend}")

        logger.info(f"Step 3: Starting uvicorn server on {host}:{port}...")
        uvicorn.run(
            "clinicflow.app:app",
            host=host,
            port=port,
            log_level=settings.logging.level.lower(),
            access_log=True,
        )
    except Exception as e:
        logger.error("CRITICAL: Failed to start application")
        logger.error(f"Error: {type(e).__name__}: {e}")
        logger.error(traceback.format_exc())
        logger.error("Check MONGO_URI, or set DATABASE_BACKEND=memory to run without MongoDB")
        sys.exit(1)


if __name__ == "__main__":
    main()
