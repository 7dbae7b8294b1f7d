"""
Database connection module for the hosted Postgres behind the voucher API.

Two engines are kept: the read engine uses the public role, the service
engine uses the privileged role that bypasses row-level security and is
used for every write path.
"""

import time
import logging
from typing import Iterator, Optional
from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from doorprize.config import Settings

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


def normalize_database_url(url: str) -> str:
    """Strip accidental whitespace/quotes and fix the legacy postgres:// scheme."""
    url = url.strip().strip("'").strip('"')

    # SQLALCHEMY COMPATIBILITY: Fix 'postgres://' to 'postgresql://'
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    return url


def sanitized_host(url: str) -> str:
    return url.split("@")[1].split("/")[0].split(":")[0] if "@" in url else "unknown"


def create_database_engine(url: str) -> Engine:
    """Create SQLAlchemy engine with connection pooling for the hosted database."""
    db_url = normalize_database_url(url)
    logger.info(f"Configuring database engine for host: {sanitized_host(db_url)}")

    if db_url.startswith("sqlite"):
        return create_engine(db_url, connect_args={"check_same_thread": False})

    return create_engine(
        db_url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=5,
        max_overflow=10,
        connect_args={
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000"
        }
    )


class Database:
    """Holds the read and service engines and their session factories."""

    def __init__(self, read_engine: Engine, service_engine: Optional[Engine] = None):
        self.read_engine = read_engine
        self.service_engine = service_engine or read_engine
        self._read_session = sessionmaker(autocommit=False, autoflush=False, bind=self.read_engine)
        self._service_session = sessionmaker(autocommit=False, autoflush=False, bind=self.service_engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        read_engine = create_database_engine(settings.DATABASE_URL)
        if settings.DATABASE_SERVICE_URL:
            service_engine = create_database_engine(settings.DATABASE_SERVICE_URL)
        else:
            service_engine = read_engine
        return cls(read_engine, service_engine)

    def read_session(self) -> Session:
        return self._read_session()

    def service_session(self) -> Session:
        return self._service_session()

    def dispose(self) -> None:
        self.read_engine.dispose()
        if self.service_engine is not self.read_engine:
            self.service_engine.dispose()


def connect_with_retry(engine: Engine, max_retries=5, delay=3) -> bool:
    """Linear backoff while the database network comes up."""
    last_error = None
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                logger.info("Database connection established successfully.")
                return True
        except Exception as e:
            last_error = e
            wait = delay * (attempt + 1)
            logger.warning(f"DB Connection attempt {attempt + 1} failed. Retrying in {wait}s...")
            time.sleep(wait)
    logger.error(f"Failed to connect: {last_error}")
    return False


def check_database_health(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False


def get_connection_info(engine: Engine) -> dict:
    url = engine.url
    return {
        "driver": url.drivername,
        "database_name": url.database,
        "host": url.host,
        "port": url.port,
    }


def get_db(request: Request) -> Iterator[Session]:
    """Session on the public/read role."""
    db = request.app.state.database.read_session()
    try:
        yield db
    finally:
        db.close()


def get_service_db(request: Request) -> Iterator[Session]:
    """Session on the service role, for write paths."""
    db = request.app.state.database.service_session()
    try:
        yield db
    finally:
        db.close()
