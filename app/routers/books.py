from fastapi import APIRouter, Depends, Query, status

from app.auth import get_current_user
from app.depends import get_open_library_service, get_preference_service, get_summarizer
from app.models.users import User as UserModel
from app.schemas.books import BooksList, BookDetail, LikeResponse, LikedBookInfo
from app.services import catalog
from app.services.open_library import OpenLibraryService
from app.services.preferences import PreferenceService
from app.services.summarizer import BookSummarizer

router = APIRouter(
    tags=["books"],
)


@router.get("/", response_model=BooksList)
async def list_books(
    query: str = Query("all", description="Search query"),
    limit: str | None = Query(None, description="Results per page, clamped to 1..100; unparseable values mean 20"),
    page: str | None = Query(None, description="Page number, at least 1; unparseable values mean 1"),
    service: OpenLibraryService = Depends(get_open_library_service),
):
    """
    Returns a page of books from Open Library
    """
    return await catalog.list_books(service, query, limit, page)


@router.get("/book/{id}", response_model=BookDetail)
async def get_book(
    id: str,
    summarize: bool = Query(False, description="Add an AI summary of the description"),
    service: OpenLibraryService = Depends(get_open_library_service),
    summarizer: BookSummarizer = Depends(get_summarizer),
):
    """
    Returns detailed book information by work OLID
    """
    return await catalog.get_book_detail(service, summarizer, id, want_summary=summarize)


@router.post("/book/{id}/like", response_model=LikeResponse, status_code=status.HTTP_201_CREATED)
async def like_book(
    id: str,
    current_user: UserModel = Depends(get_current_user),
    service: PreferenceService = Depends(get_preference_service),
):
    """
    Likes a book and feeds its subjects into the user's preferences
    """
    result = await service.record_like(current_user.id, id)

    return LikeResponse(
        message="Book liked successfully",
        book=LikedBookInfo(olid=result.olid, title=result.title),
        preferences_updated=result.preferences_updated,
    )
