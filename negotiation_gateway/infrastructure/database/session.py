"""Engine and per-request sessions for the negotiation session store"""

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from negotiation_gateway.config import settings

# No connection opens until the first session state load
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,  # Verify connections before using
    pool_size=10,
    max_overflow=10,
    pool_recycle=3600,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """
    One session per chat or session-management request.

    Endpoints commit after the turn is persisted and roll back on failure;
    this only returns the connection to the pool.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
