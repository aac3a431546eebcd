import os

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

from courtsync.core.config import settings  # noqa: E402
from courtsync.core.database import init_db  # noqa: E402


def prepare_storage():
    """Create the document archive root and the log directory"""
    for directory in (settings.BLOB_STORAGE_ROOT, os.path.dirname(settings.LOG_FILE)):
        if directory and not os.path.isdir(directory):
            os.makedirs(directory, exist_ok=True)
            logger.info(f"Created directory {directory}")


if __name__ == "__main__":
    try:
        # Cases, run history, subscriptions and notifications; missing columns are added
        init_db()
        prepare_storage()
        logger.info("Database and storage initialization completed successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
