from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from horizon_library.core.auth import get_librarian
from horizon_library.core.config import get_settings
from horizon_library.core.errors import UploadTooLargeError
from horizon_library.schemas.book import BookDeleted, BookRead
from horizon_library.services.book_service import BookService, get_book_service
from horizon_library.services.cover_images import CoverUpload

# Auth runs as a router dependency, before any body field is touched
router = APIRouter(
    prefix="/api/librarian/books",
    tags=["librarian"],
    dependencies=[Depends(get_librarian)],
)

CHUNK_SIZE = 1024 * 1024


async def _read_upload(file: Optional[UploadFile]) -> Optional[CoverUpload]:
    if file is None:
        return None
    # size check: read into chunks to avoid memory spike
    limit = get_settings().max_upload_mb * 1024 * 1024
    chunks = []
    size = 0
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise UploadTooLargeError()
        chunks.append(chunk)
    if size == 0:
        return None
    return CoverUpload(data=b"".join(chunks), filename=file.filename or "upload", content_type=file.content_type)


def _fields(**values: Optional[str]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


@router.post("", response_model=BookRead, status_code=status.HTTP_201_CREATED, summary="Add a book")
async def create_book(
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    isbn: Optional[str] = Form(None),
    published_date: Optional[str] = Form(None, description="YYYY-MM-DD"),
    description: Optional[str] = Form(None),
    shelf_number: Optional[str] = Form(None),
    row_position: Optional[str] = Form(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    service: BookService = Depends(get_book_service),
):
    upload = await _read_upload(cover_image)
    fields = _fields(
        title=title,
        author=author,
        isbn=isbn,
        published_date=published_date,
        description=description,
        shelf_number=shelf_number,
        row_position=row_position,
    )
    return service.create(fields, upload)


@router.put("/{book_id}", response_model=BookRead, summary="Update a book")
async def update_book(
    book_id: int,
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    isbn: Optional[str] = Form(None),
    published_date: Optional[str] = Form(None, description="YYYY-MM-DD"),
    description: Optional[str] = Form(None),
    shelf_number: Optional[str] = Form(None),
    row_position: Optional[str] = Form(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    remove_cover_image: bool = Form(False, description="true to drop the current cover when no new file is sent"),
    service: BookService = Depends(get_book_service),
):
    upload = await _read_upload(cover_image)
    fields = _fields(
        title=title,
        author=author,
        isbn=isbn,
        published_date=published_date,
        description=description,
        shelf_number=shelf_number,
        row_position=row_position,
    )
    return service.update(book_id, fields, upload, clear_cover=remove_cover_image)


@router.delete("/{book_id}", response_model=BookDeleted, summary="Delete a book")
def delete_book(book_id: int, service: BookService = Depends(get_book_service)):
    service.delete(book_id)
    return BookDeleted(id=book_id)
