from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()

def create_db_engine(url: str = None):
    """Create an engine for the configured database"""
    url = url or settings.DATABASE_URL
    if url.startswith("sqlite"):
        return create_engine(url, future=True, connect_args={"check_same_thread": False})
    return create_engine(url, future=True, pool_pre_ping=True, pool_recycle=3600)

engine = create_db_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, future=True)

def init_db(bind=None):
    """Create all tables"""
    # Registers every model on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created")

def test_database_connection() -> bool:
    """Test the database connection"""
    try:
        with engine.connect() as connection:
            connection.exec_driver_sql("SELECT 1")
        return True
    except Exception as e:
        logging.error(f"Database connection test failed: {e}")
        return False
