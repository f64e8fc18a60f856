from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Librarian(Base):
    __tablename__ = "librarians"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    # normalized form, see services.book_store.normalize_isbn
    isbn = Column(String(20), unique=True, index=True, nullable=False)
    published_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)

    # Reference returned by the file storage; owned by this row only
    cover_image_url = Column(String(512), nullable=True)

    shelf_number = Column(String(50), nullable=True)
    row_position = Column(String(50), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
