from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.utils.logger import get_logger
from app.exceptions import DatabaseError, handle_database_error

logger = get_logger("database")

SQLALCHEMY_DATABASE_URL = settings.SQLALCHEMY_DATABASE_URL


def build_engine(url: str):
    """
    Create an engine for the given URL

    SQLite gets a thread-agnostic connection (and a single shared one when
    in-memory); everything else gets the pooled PostgreSQL setup.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(
        url,
        pool_pre_ping=True,  # Checks connection health before using
        pool_size=20,        # Number of connections to keep open
        max_overflow=30      # Number of connections beyond pool_size allowed
    )


try:
    engine = build_engine(SQLALCHEMY_DATABASE_URL)
    logger.info("Database engine created successfully")
except Exception as e:
    logger.error(f"Failed to create database engine: {str(e)}", exc_info=True)
    raise DatabaseError("Failed to initialize database connection", details={"original_error": str(e)})

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """
    Database dependency that provides a database session

    Yields:
        Session: Database session

    Raises:
        DatabaseError: If database connection fails
    """
    db = SessionLocal()
    try:
        logger.debug("Database session created")
        yield db
    except SQLAlchemyError as e:
        logger.error(f"Database session error: {str(e)}", exc_info=True)
        raise handle_database_error(e, "database session")
    finally:
        try:
            db.close()
            logger.debug("Database session closed")
        except Exception as e:
            logger.error(f"Error closing database session: {str(e)}")


def init_db():
    """Create all tables for the registered models"""
    # Import models so they register on Base.metadata
    from app.models import users, otp, progress, favourites, daily_verse  # noqa: F401

    Base.metadata.create_all(bind=engine)
