from datetime import datetime

from pydantic import Field

from app.schemas.base import CamelModel


class BooksListItem(CamelModel):
    olid: str = Field(..., description="Work OLID")
    title: str | None = Field(None, description="Book title")
    author: str = Field(..., description="First author or 'Unknown Author'")
    authors: list[str] = Field(default_factory=list, description="All author names")
    cover_url: str | None = Field(None, description="Medium cover image URL")
    publish_year: int | None = Field(None, description="First publishing year")


class Pagination(CamelModel):
    current_page: int
    limit: int
    total_results: int
    total_pages: int


class BooksList(CamelModel):
    books: list[BooksListItem]
    pagination: Pagination


class Author(CamelModel):
    key: str
    name: str


class BookDetail(CamelModel):
    """
    Detailed information about a work
    """
    olid: str
    title: str | None = None
    description: str | None = None
    ai_summary: str | None = Field(None, description="Gemini summary, only when requested and available")
    subjects: list[str] = Field(default_factory=list)
    authors: list[Author] = Field(default_factory=list)
    cover_url: str | None = None
    first_publish_date: str | None = None
    links: list[dict] = Field(default_factory=list)


class LikedBook(CamelModel):
    id: int
    olid: str
    title: str | None = None
    cover_url: str | None = None


class LikedBookInfo(CamelModel):
    olid: str
    title: str | None = None


class LikeResponse(CamelModel):
    message: str
    book: LikedBookInfo
    preferences_updated: int = Field(..., description="Number of subjects processed")


class ShelfBook(CamelModel):
    id: int
    olid: str
    title: str | None = None
    cover_url: str | None = None
    liked_at: datetime


class ShelfOwner(CamelModel):
    id: int
    username: str


class Bookshelf(CamelModel):
    user: ShelfOwner
    books: list[ShelfBook]
    total_books: int


class PreferenceItem(CamelModel):
    subject: str
    weight: int


class PreferenceList(CamelModel):
    preferences: list[PreferenceItem]
    insight: str | None = None
