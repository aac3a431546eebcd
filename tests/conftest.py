import os
import sys
import tempfile

# Settings are read at import time: point them at throwaway locations first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "courtsync-tests.log")
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ["BLOB_STORAGE_ROOT"] = tempfile.mkdtemp(prefix="courtsync-blobs-")
os.environ["CAPTCHA_RETRY_DELAY"] = "0"

# Ensure the project root and the test helpers are importable
TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(TESTS_DIR, os.pardir))
for path in (PROJECT_ROOT, TESTS_DIR):
    if path not in sys.path:
        sys.path.insert(0, path)

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from courtsync.core.database import init_db  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()
