from sqlalchemy import create_engine, text, inspect
from sqlalchemy.orm import sessionmaker
from loguru import logger

from courtsync.core.config import settings
from courtsync.core.base import Base

SQLALCHEMY_DATABASE_URL = settings.SQLALCHEMY_DATABASE_URL


def make_engine(url: str):
    """Create an engine; sqlite needs cross-thread access for the API worker pool"""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = make_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db(bind=None):
    """Initialize the database: create missing tables, then add missing columns

    Args:
        bind: engine to initialize, defaults to the configured engine
    """
    bind = bind or engine
    try:
        # Import all models here to avoid circular imports
        from courtsync.models.case_detail import CaseDetail  # noqa: F401
        from courtsync.models.scraping_log import ScrapingLog  # noqa: F401
        from courtsync.models.case_subscription import CaseSubscription  # noqa: F401
        from courtsync.models.notification import Notification  # noqa: F401

        Base.metadata.create_all(bind=bind)
        logger.info("Database tables created successfully")

        # Check for missing columns and add them
        inspector = inspect(bind)
        for table_name in Base.metadata.tables.keys():
            existing_columns = [col['name'] for col in inspector.get_columns(table_name)]
            table = Base.metadata.tables[table_name]

            for column in table.columns:
                if column.name not in existing_columns:
                    logger.info(f"Adding missing column {column.name} to table {table_name}")
                    column_type = column.type.compile(bind.dialect)
                    nullable = "NULL" if column.nullable else "NOT NULL"
                    default = f"DEFAULT '{column.default.arg}'" if column.default is not None and not callable(column.default.arg) else ""

                    with bind.connect() as connection:
                        sql = text(f"ALTER TABLE {table_name} ADD COLUMN {column.name} {column_type} {nullable} {default}")
                        connection.execute(sql)
                        connection.commit()

                    logger.info(f"Successfully added column {column.name} to table {table_name}")

    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")
        raise

def get_db():
    """
    Get database session
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        raise
    finally:
        db.close()
