from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BookRead(BaseModel):
    id: int
    title: str
    author: str
    isbn: str
    published_date: date
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    shelf_number: Optional[str] = None
    row_position: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class BookDeleted(BaseModel):
    message: str = "Book deleted successfully"
    id: int
