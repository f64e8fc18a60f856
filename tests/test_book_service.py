import logging
import os

import pytest
from sqlalchemy.exc import OperationalError

from horizon_library.core.errors import DuplicateKeyError, StorageError
from horizon_library.models import Book
from horizon_library.services.book_service import BookService
from horizon_library.services.book_store import BookStore
from horizon_library.services.cover_images import CoverImageManager, CoverUpload

FIELDS = {"title": "A", "author": "B", "isbn": "111", "published_date": "2020-01-01"}


class FlakyStorage:
    """Stores in memory; deletes always fail."""

    def __init__(self):
        self.files = {}

    def store(self, data, suggested_name):
        ref = f"/uploads/{len(self.files)}-{suggested_name}"
        self.files[ref] = data
        return ref

    def delete(self, reference):
        raise StorageError(f"cannot delete {reference}")


@pytest.fixture
def flaky():
    return FlakyStorage()


@pytest.fixture
def service(db, flaky):
    return BookService(BookStore(db), CoverImageManager(flaky))


def test_failed_release_does_not_block_update(service, caplog):
    book = service.create(FIELDS, CoverUpload(b"one", "one.png"))
    old_ref = book.cover_image_url

    with caplog.at_level(logging.WARNING):
        updated = service.update(book.id, {}, CoverUpload(b"two", "two.png"))
    assert updated.cover_image_url != old_ref
    assert "Could not release cover image" in caplog.text


def test_failed_release_does_not_block_delete(service):
    book = service.create(FIELDS, CoverUpload(b"one", "one.png"))
    service.delete(book.id)
    assert service.list() == []


def test_failed_discard_keeps_original_error(service):
    service.create(FIELDS)
    with pytest.raises(DuplicateKeyError):
        service.create(FIELDS, CoverUpload(b"dup", "dup.png"))


def test_clear_without_cover_is_harmless(service, flaky):
    book = service.create(FIELDS)
    assert service.update(book.id, {}, clear_cover=True).cover_image_url is None
    assert flaky.files == {}


@pytest.fixture
def local_service(db, storage):
    return BookService(BookStore(db), CoverImageManager(storage))


def test_broken_table_discards_upload(local_service, db, storage):
    Book.__table__.drop(bind=db.get_bind())

    with pytest.raises(StorageError):
        local_service.create(FIELDS, CoverUpload(b"img", "a.png"))
    assert os.listdir(storage.directory) == []

    with pytest.raises(StorageError):
        local_service.list()


def test_failed_delete_keeps_row_and_cover(local_service, db, storage, monkeypatch):
    book = local_service.create(FIELDS, CoverUpload(b"img", "a.png"))
    ref = book.cover_image_url

    def failing_commit():
        raise OperationalError("DELETE FROM books", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(StorageError):
        local_service.delete(book.id)
    monkeypatch.undo()

    assert local_service.get(book.id).cover_image_url == ref
    assert os.path.exists(storage.path_for(ref))
