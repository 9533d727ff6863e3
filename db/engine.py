"""
SQLAlchemy engine and session factory.

Usage:
    from db.engine import create_db_engine, create_session_factory, init_db

    engine = create_db_engine(settings.DATABASE_URL)
    init_db(engine)
    SessionLocal = create_session_factory(engine)

    with SessionLocal() as db:
        user = db.query(User).first()
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


# Base class for all models
Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if database_url.startswith("sqlite"):
        if database_url == "sqlite://" or ":memory:" in database_url:
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=echo,
            )
        return create_engine(database_url, connect_args={"check_same_thread": False}, echo=echo)
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before use
        pool_size=10,
        max_overflow=20,
        echo=echo,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    # Registers the models on Base.metadata
    import db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
