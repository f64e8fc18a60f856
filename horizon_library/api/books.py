from typing import List

from fastapi import APIRouter, Depends

from horizon_library.schemas.book import BookRead
from horizon_library.services.book_service import get_book_store
from horizon_library.services.book_store import BookStore

router = APIRouter(prefix="/api/books", tags=["books"])


@router.get("", response_model=List[BookRead], summary="All books")
def list_books(store: BookStore = Depends(get_book_store)):
    return store.list()


@router.get("/{book_id}", response_model=BookRead, summary="One book")
def get_book(book_id: int, store: BookStore = Depends(get_book_store)):
    return store.get(book_id)
