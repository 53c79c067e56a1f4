import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from bookshare.core.database import build_engine, build_session_factory, ensure_database_dir, init_db
from bookshare.core.errors import StorageUnavailable
from bookshare.core.messages import DEFAULT_CATEGORIES, DEFAULT_CATEGORY
from bookshare.models.book import Book
from bookshare.models.category import Category

logger = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value; larger ids cannot match a row.
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1


def _storable_id(book_id: int) -> bool:
    return MIN_ID <= book_id <= MAX_ID


class CatalogStore:
    """
    Owns the database engine for one process lifetime.

    Methods are synchronous; the API runs them on the threadpool.
    Every SQLAlchemy failure is re-raised as StorageUnavailable with the
    original exception chained for logging.
    """

    def __init__(self, database_url: str, default_categories: Optional[List[str]] = None) -> None:
        self.database_url = database_url
        self.default_categories = list(DEFAULT_CATEGORIES if default_categories is None else default_categories)
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        if self._engine is not None:
            return
        ensure_database_dir(self.database_url)
        self._engine = build_engine(self.database_url)
        self._sessions = build_session_factory(self._engine)
        try:
            init_db(self._engine)
            self._seed_categories()
        except SQLAlchemyError as e:
            self.close()
            raise StorageUnavailable(details="schema initialization failed") from e

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Database connection closed.")

    @contextmanager
    def session(self) -> Iterator[Session]:
        if self._sessions is None:
            raise StorageUnavailable(details="catalog store is not open")
        db = self._sessions()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageUnavailable(details=type(e).__name__) from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _seed_categories(self) -> None:
        with self.session() as db:
            existing = set(db.scalars(select(Category.name)))
            missing = [name for name in self.default_categories if name not in existing]
            db.add_all(Category(name=name) for name in missing)
        if missing:
            logger.info("Seeded %d default categories", len(missing))

    def ping(self) -> bool:
        with self.session() as db:
            db.execute(text("SELECT 1"))
        return True

    def list_books(self) -> List[Book]:
        with self.session() as db:
            stmt = select(Book).order_by(Book.created_at.desc(), Book.id.desc())
            return list(db.scalars(stmt))

    def get_book(self, book_id: int) -> Optional[Book]:
        if not _storable_id(book_id):
            return None
        with self.session() as db:
            return db.get(Book, book_id)

    def add_book(
        self,
        *,
        title: str,
        author: str,
        filename: str,
        originalname: str,
        description: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Book:
        book = Book(
            title=title,
            author=author,
            description=description or "",
            category=category or DEFAULT_CATEGORY,
            filename=filename,
            originalname=originalname,
            rating=0.0,
        )
        with self.session() as db:
            db.add(book)
            db.flush()
        logger.info("Added book %d %r by %r", book.id, title, author)
        return book

    def update_rating(self, book_id: int, rating: float) -> bool:
        """Overwrite the stored rating. Returns False when no such book exists."""
        if not _storable_id(book_id):
            return False
        with self.session() as db:
            book = db.get(Book, book_id)
            if book is None:
                return False
            book.rating = float(rating)
        logger.info("Rating of book %d set to %s", book_id, rating)
        return True

    def list_categories(self) -> List[Category]:
        with self.session() as db:
            return list(db.scalars(select(Category).order_by(Category.name.asc())))
