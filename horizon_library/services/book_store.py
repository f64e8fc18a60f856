import logging
import re
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from horizon_library.core.errors import DuplicateKeyError, NotFoundError, StorageError, ValidationError
from horizon_library.models import Book

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "author", "isbn", "published_date")
OPTIONAL_FIELDS = ("description", "shelf_number", "row_position", "cover_image_url")
ISBN_MAX_LENGTH = Book.__table__.c.isbn.type.length


def normalize_isbn(raw: str) -> str:
    # strip spaces and hyphens, upper-case the X check digit
    return re.sub(r"[\s-]", "", raw).upper()


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError("published_date must be YYYY-MM-DD")


def _clean(fields: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
    """Trim and type-check incoming fields.

    ``None`` means "not provided". On create every required field must be
    present; on update only the provided ones are checked. Empty strings are
    rejected for required fields and mean null for optional ones.
    """
    cleaned: Dict[str, Any] = {}
    missing: List[str] = []
    for name in REQUIRED_FIELDS:
        value = fields.get(name)
        if isinstance(value, str):
            value = value.strip()
        if value is None and partial:
            continue
        if value is None or value == "":
            missing.append(name)
            continue
        if name == "published_date":
            value = _parse_date(value)
        elif name == "isbn":
            value = normalize_isbn(value)
            if not value:
                missing.append(name)
                continue
            if len(value) > ISBN_MAX_LENGTH:
                raise ValidationError(f"isbn must be at most {ISBN_MAX_LENGTH} characters")
        cleaned[name] = value
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    for name in OPTIONAL_FIELDS:
        if name not in fields:
            continue
        value = fields[name]
        if value is None and partial:
            # cover_image_url=None is an explicit clear, not an omission
            if name != "cover_image_url":
                continue
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[name] = value
    return cleaned


class BookStore:
    """Book rows behind one SQLAlchemy session.

    Uniqueness of ``isbn`` is checked up front for a clear error, and the
    unique index catches whatever races past the check.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Every session call goes through here: roll back and raise a typed error."""
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateKeyError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Book %s failed", action)
            raise StorageError(str(e)) from e

    def get(self, book_id: int) -> Book:
        with self._guard("lookup"):
            book = self.db.get(Book, book_id)
        if book is None:
            raise NotFoundError()
        return book

    def list(self) -> List[Book]:
        with self._guard("listing"):
            return self.db.query(Book).order_by(Book.id.asc()).all()

    def _isbn_taken(self, isbn: str, exclude_id: Optional[int] = None) -> bool:
        with self._guard("isbn check"):
            q = self.db.query(Book.id).filter(Book.isbn == isbn)
            if exclude_id is not None:
                q = q.filter(Book.id != exclude_id)
            return q.first() is not None

    def create(self, fields: Mapping[str, Any]) -> Book:
        values = _clean(fields, partial=False)
        if self._isbn_taken(values["isbn"]):
            raise DuplicateKeyError()
        book = Book(**values)
        with self._guard("create"):
            self.db.add(book)
            self.db.commit()
            self.db.refresh(book)
        logger.info("Created book id=%s isbn=%s", book.id, book.isbn)
        return book

    def update(self, book_id: int, fields: Mapping[str, Any]) -> Book:
        book = self.get(book_id)
        values = _clean(fields, partial=True)
        if "isbn" in values and self._isbn_taken(values["isbn"], exclude_id=book.id):
            raise DuplicateKeyError()
        with self._guard("update"):
            for name, value in values.items():
                setattr(book, name, value)
            self.db.commit()
            self.db.refresh(book)
        logger.info("Updated book id=%s fields=%s", book.id, sorted(values))
        return book

    def delete(self, book_id: int) -> Book:
        book = self.get(book_id)
        with self._guard("delete"):
            self.db.delete(book)
            self.db.commit()
        logger.info("Deleted book id=%s", book_id)
        return book
