from typing import Any, Dict, List, Mapping, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from horizon_library.core.config import get_settings
from horizon_library.core.errors import CatalogError
from horizon_library.database import get_db
from horizon_library.models import Book
from horizon_library.services.book_store import BookStore
from horizon_library.services.cover_images import CoverImageManager, CoverUpload
from horizon_library.services.file_storage import FileStorage, get_file_storage


class BookService:
    """Librarian operations: the book row and its cover file move together."""

    def __init__(self, store: BookStore, covers: CoverImageManager):
        self.store = store
        self.covers = covers

    def get(self, book_id: int) -> Book:
        return self.store.get(book_id)

    def list(self) -> List[Book]:
        return self.store.list()

    def create(self, fields: Mapping[str, Any], upload: Optional[CoverUpload] = None) -> Book:
        new_ref = self.covers.stage(upload)
        values: Dict[str, Any] = dict(fields)
        values["cover_image_url"] = new_ref
        try:
            return self.store.create(values)
        except CatalogError:
            self.covers.discard(new_ref)
            raise

    def update(
        self,
        book_id: int,
        fields: Mapping[str, Any],
        upload: Optional[CoverUpload] = None,
        clear_cover: bool = False,
    ) -> Book:
        new_ref = self.covers.stage(upload)
        values: Dict[str, Any] = {k: v for k, v in fields.items() if k != "cover_image_url"}
        try:
            current = self.store.get(book_id).cover_image_url
            keep, stale = self.covers.resolve(current, new_ref, clear_cover)
            if keep != current:
                values["cover_image_url"] = keep
            book = self.store.update(book_id, values)
        except CatalogError:
            self.covers.discard(new_ref)
            raise
        self.covers.release(stale)
        return book

    def delete(self, book_id: int) -> Book:
        book = self.store.get(book_id)
        owned = book.cover_image_url
        # the file goes only once the row is gone
        deleted = self.store.delete(book_id)
        self.covers.release(owned)
        return deleted


def get_book_store(db: Session = Depends(get_db)) -> BookStore:
    return BookStore(db)


def get_book_service(
    store: BookStore = Depends(get_book_store),
    storage: FileStorage = Depends(get_file_storage),
) -> BookService:
    return BookService(store, CoverImageManager(storage, get_settings().max_upload_mb))
