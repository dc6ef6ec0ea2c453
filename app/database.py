import logging
import os
import time
from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker

from .config import DATABASE_SERVICE_URL, DATABASE_URL

logger = logging.getLogger(__name__)

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "20"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "30"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))

ADMIN_ACCESS_REQUIRED = (
    "Admin access is required to complete this operation. Service key not configured."
)


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite gets thread-safe connect args instead of pool sizing"""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,  # Test connections before using
        pool_recycle=POOL_RECYCLE,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        echo=False,  # Don't log all SQL (use slow query logging instead)
    )


def enable_slow_query_logging(target: Engine) -> None:
    @event.listens_for(target, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(target, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")


try:
    engine = build_engine(DATABASE_URL)
    admin_engine: Optional[Engine] = build_engine(DATABASE_SERVICE_URL) if DATABASE_SERVICE_URL else None
    logger.info("✅ Database engine created successfully")
    if admin_engine is None:
        logger.warning("⚠️ DATABASE_SERVICE_URL not set - admin writes are disabled")
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

if ENABLE_QUERY_LOGGING:
    enable_slow_query_logging(engine)
    if admin_engine is not None:
        enable_slow_query_logging(admin_engine)
    logger.info(f"📊 Slow query logging enabled (threshold: {SLOW_QUERY_THRESHOLD}s)")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
AdminSessionLocal = (
    sessionmaker(autocommit=False, autoflush=False, bind=admin_engine) if admin_engine else None
)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_optional_admin_db():
    """Privileged session, or None when no service credential is configured"""
    if AdminSessionLocal is None:
        yield None
        return

    db = AdminSessionLocal()
    try:
        yield db
    finally:
        db.close()


def require_admin_session(db):
    """Fail with a configuration error when the privileged credential is missing"""
    if db is None:
        logger.error("❌ Privileged database access requested but DATABASE_SERVICE_URL is not set")
        raise HTTPException(status_code=503, detail=ADMIN_ACCESS_REQUIRED)
    return db


def get_admin_db(db=Depends(get_optional_admin_db)):
    return require_admin_session(db)
