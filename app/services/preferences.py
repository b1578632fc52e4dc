"""
Like workflow and subject preference bookkeeping.

Liking a book is a chain of independently committed steps:

1. fetch the work from the catalog (title + subjects)
2. find or create the local Book row
3. reject the like if the pair already exists
4. insert the Like
5. bump one Preference counter per distinct subject

Step 5 is best-effort. Once the like is committed, a failure while updating
preferences is logged and the like still succeeds.
"""
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ValidationError, DuplicateError
from app.log import get_logger
from app.models.books import Book as BookModel
from app.models.likes import Like as LikeModel
from app.models.preferences import Preference as PreferenceModel, normalize_subject
from app.services.open_library import OpenLibraryService, cover_url

logger = get_logger(__name__)


@dataclass
class LikeResult:
    olid: str
    title: str | None
    preferences_updated: int


@dataclass
class ShelfEntry:
    id: int
    olid: str
    title: str | None
    cover_url: str | None
    liked_at: datetime


def clean_subjects(subjects) -> list[str]:
    """
    Drops non-string and blank entries, keeps order and duplicates
    """
    if not isinstance(subjects, list):
        return []
    return [s for s in subjects if isinstance(s, str) and s.strip()]


class PreferenceService:
    def __init__(self, db: AsyncSession, catalog: OpenLibraryService):
        self.db = db
        self.catalog = catalog

    async def get_or_create_book(self, olid: str, title: str | None = None, cover: str | None = None) -> BookModel:
        """
        Returns the Book for olid, creating it if needed.

        Two first-likes racing each other both try to insert; the loser hits
        the unique index on olid and picks up the winner's row.
        """
        book = await self.db.scalar(select(BookModel).where(BookModel.olid == olid))
        if book:
            return book

        book = BookModel(olid=olid, title=title, cover_url=cover)
        self.db.add(book)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            book = await self.db.scalar(select(BookModel).where(BookModel.olid == olid))
            if book is None:
                raise
            return book

        await self.db.refresh(book)
        return book

    async def _find_like(self, user_id: int, book_id: int) -> LikeModel | None:
        return await self.db.scalar(
            select(LikeModel).where(
                LikeModel.user_id == user_id,
                LikeModel.book_id == book_id,
            )
        )

    async def record_like(self, user_id: int, olid: str) -> LikeResult:
        olid = (olid or "").strip()
        if not olid:
            raise ValidationError("Book ID is required")

        # NotFound / UpstreamError from the catalog propagate unchanged
        work = await self.catalog.get_work(olid)
        title = work.get("title")
        covers = work.get("covers") or []

        book = await self.get_or_create_book(olid, title, cover_url(covers[0] if covers else None, "M"))
        book_id = book.id

        if await self._find_like(user_id, book_id):
            raise DuplicateError("You have already liked this book")

        self.db.add(LikeModel(user_id=user_id, book_id=book_id))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            # Duplicate only if the pair exists; a broken reference is re-raised
            if await self._find_like(user_id, book_id):
                raise DuplicateError("You have already liked this book")
            raise

        logger.info("User %s liked %s", user_id, olid)

        subjects = clean_subjects(work.get("subjects"))
        if subjects:
            await self.apply_subjects(user_id, subjects)

        return LikeResult(olid=olid, title=title, preferences_updated=len(subjects))

    async def apply_subjects(self, user_id: int, subjects: list[str]) -> None:
        """
        Adds 1 to the user's weight for every distinct subject in the list.

        Never raises: errors are logged and the remaining updates are abandoned.
        """
        try:
            seen: set[str] = set()
            for subject in clean_subjects(subjects):
                key = normalize_subject(subject)
                if key in seen:
                    continue
                seen.add(key)

                preference = await self.db.scalar(
                    select(PreferenceModel).where(
                        PreferenceModel.user_id == user_id,
                        PreferenceModel.subject == key,
                    )
                )
                if preference:
                    preference.weight += 1
                else:
                    self.db.add(PreferenceModel(user_id=user_id, subject=key, weight=1))

                await self.db.commit()
        except Exception:
            logger.exception("Error updating preferences for user %s", user_id)
            await self.db.rollback()

    async def list_bookshelf(self, user_id: int) -> list[ShelfEntry]:
        result = await self.db.execute(
            select(LikeModel, BookModel)
            .join(BookModel, LikeModel.book_id == BookModel.id)
            .where(LikeModel.user_id == user_id)
            .order_by(LikeModel.created_at.desc(), LikeModel.id.desc())
        )

        return [
            ShelfEntry(
                id=book.id,
                olid=book.olid,
                title=book.title,
                cover_url=book.cover_url,
                liked_at=like.created_at,
            )
            for like, book in result.all()
        ]

    async def list_preferences(self, user_id: int) -> list[PreferenceModel]:
        result = await self.db.scalars(
            select(PreferenceModel)
            .where(PreferenceModel.user_id == user_id)
            .order_by(PreferenceModel.weight.desc(), PreferenceModel.subject)
        )
        return list(result.all())
