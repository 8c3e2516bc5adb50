"""Database session management."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tripflow_api.settings import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict:
    """Pool options for the configured backend."""
    if url.startswith("sqlite"):
        # Local development only; production settings validation rejects SQLite
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


engine = create_engine(
    settings.database_url_computed,
    echo=settings.sql_echo,
    **_engine_options(settings.database_url_computed),
)

SessionLocal = sessionmaker(autoflush=False, bind=engine)


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
