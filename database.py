import logging
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from config import Config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Base for the user database (accounts, sync items, user bibles)
Base = declarative_base()
# Base for the read-only reference corpus (verses)
ReferenceBase = declarative_base()

SessionLocal = sessionmaker(autocommit=False, autoflush=False)
ReferenceSessionLocal = sessionmaker(autocommit=False, autoflush=False)

engine = None
reference_engine = None


def _build_engine(url):
    if url.startswith('sqlite'):
        kwargs = {'connect_args': {'check_same_thread': False}}
        if url in ('sqlite://', 'sqlite:///:memory:'):
            # A single shared connection, otherwise every session sees an empty database
            kwargs['poolclass'] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True, pool_recycle=3600)


def configure_engine(url=None):
    """(Re)bind the user database session factory to ``url``."""
    global engine
    url = url or Config.DATABASE_URL
    engine = _build_engine(url)
    SessionLocal.configure(bind=engine)
    logger.info(f"User database bound to {engine.url.render_as_string(hide_password=True)}")
    return engine


def configure_reference_engine(url=None):
    """(Re)bind the reference corpus session factory to ``url``."""
    global reference_engine
    url = url or Config.REFERENCE_DB_URL
    reference_engine = _build_engine(url)
    ReferenceSessionLocal.configure(bind=reference_engine)
    logger.info(f"Reference database bound to {reference_engine.url}")
    return reference_engine


configure_engine()
configure_reference_engine()


def init_db():
    """Create user database tables that don't exist yet. Alembic owns production schema."""
    import models  # noqa: F401 - registers the tables on Base
    Base.metadata.create_all(bind=engine)


# Context manager for SQLAlchemy sessions (needed for Flask routes)
@contextmanager
def get_db_session():
    """Provide a transactional scope around a series of SQLAlchemy operations."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"SQLAlchemy Session Error: {e}")
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"General Session Error: {e}")
        raise
    finally:
        db.close()


@contextmanager
def get_reference_session():
    """Read-only session against the reference corpus."""
    db = ReferenceSessionLocal()
    try:
        yield db
    finally:
        db.close()
