from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session_maker
from app.services.open_library import OpenLibraryService
from app.services.preferences import PreferenceService
from app.services.summarizer import BookSummarizer


async def get_async_db() -> AsyncIterator[AsyncSession]:
    """
    Yields one session per request
    """
    async with async_session_maker() as session:
        yield session


def get_open_library_service(request: Request) -> OpenLibraryService:
    return request.app.state.open_library_service


def get_summarizer(request: Request) -> BookSummarizer:
    return request.app.state.summarizer


def get_preference_service(
        db: AsyncSession = Depends(get_async_db),
        catalog: OpenLibraryService = Depends(get_open_library_service),
) -> PreferenceService:
    return PreferenceService(db, catalog)
