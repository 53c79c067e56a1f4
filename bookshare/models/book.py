from datetime import datetime

from sqlalchemy import Column, DateTime, Float, Integer, String, Text

from bookshare.core.database import Base
from bookshare.core.messages import DEFAULT_CATEGORY


class Book(Base):
    """
    One uploaded e-book: metadata, the name it is stored under on disk and
    the reader rating. Only `rating` changes after insert.
    """

    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, index=True)
    author = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    # Free text, not a foreign key to categories.name.
    category = Column(String(100), nullable=False, default=DEFAULT_CATEGORY)
    filename = Column(String(255), nullable=False, unique=True)
    originalname = Column(String(255), nullable=False)
    rating = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Book {self.id} {self.title!r}>"
