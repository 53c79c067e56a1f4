import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def sqlite_path(database_url: str) -> str | None:
    """Filesystem path of a file-backed SQLite URL, else None."""
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return None
    if not url.database or url.database == ":memory:":
        return None
    return url.database


def ensure_database_dir(database_url: str) -> None:
    # Fail fast with a readable message instead of a late OperationalError.
    path = sqlite_path(database_url)
    if path is None:
        return
    parent_dir = os.path.dirname(os.path.abspath(path)) or "."
    os.makedirs(parent_dir, exist_ok=True)
    if not os.access(parent_dir, os.W_OK):
        raise RuntimeError(f"Database directory not writable: {parent_dir}")


def build_engine(database_url: str) -> Engine:
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    # Import models here so SQLAlchemy registers metadata before create_all().
    from bookshare.models.book import Book  # noqa: F401
    from bookshare.models.category import Category  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready at %s", engine.url.render_as_string(hide_password=True))
