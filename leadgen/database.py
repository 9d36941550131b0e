"""
Database engine + session factory.

Always initializes — defaults to SQLite for local dev, Postgres in production.
get_session() always returns a real session.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from leadgen.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str):
    """Build an engine with the right kwargs for SQLite or Postgres."""
    # Railway/Heroku inject postgres:// but SQLAlchemy 2.x requires postgresql://
    url = database_url.replace('postgres://', 'postgresql://', 1)

    if url.startswith('sqlite'):
        kwargs = {'connect_args': {'check_same_thread': False}}
        if ':memory:' in url or url in ('sqlite://', 'sqlite:///'):
            # One shared connection, otherwise every session sees an empty DB
            kwargs['poolclass'] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_session():
    """Return a new DB session."""
    return SessionLocal()


def init_db(bind=None):
    """Create tables directly — local SQLite dev and tests only. Production uses Alembic."""
    import leadgen.models.lead  # noqa: F401  (registers the table on Base.metadata)
    Base.metadata.create_all(bind or engine)
