from sqlalchemy.orm import sessionmaker
from sqlalchemy import create_engine
import asyncio
import logging

from filmify.core.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Local/dev databases: sessions are handed across FastAPI's threadpool
        return {"connect_args": {"check_same_thread": False}}
    # pool_size: base connections
    # max_overflow: additional connections allowed
    # pool_recycle: recycle connections after N seconds to prevent stale connections
    # pool_pre_ping: verify connections before using them
    return {
        "pool_size": 20,
        "max_overflow": 30,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def init_db():
    from filmify.models import Base
    loop = asyncio.get_running_loop()

    def _create_tables():
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database tables ensured")
        except Exception as e:
            # Don't block startup; the health check reports the database as down
            logger.warning(f"Table creation failed: {e}", exc_info=True)

    await loop.run_in_executor(None, _create_tables)
