from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.users import User as UserModel
from app.models.books import Book as BookModel
from app.models.likes import Like as LikeModel
from app.schemas.users import (
    User as UserSchema,
    UserCreate,
    UserLogin,
    UserUpdate,
    UserDetail,
    UserMessage,
    LoginResponse,
    Message,
)
from app.schemas.books import LikedBook, Bookshelf, ShelfBook, ShelfOwner, PreferenceList, PreferenceItem
from app.depends import get_async_db, get_preference_service, get_summarizer
from app.auth import hash_password, verify_password, create_user_token, get_current_user, can_act_on
from app.exceptions import DuplicateError, InvalidCredentials, Forbidden, NotFound
from app.log import get_logger
from app.services.preferences import PreferenceService
from app.services.summarizer import BookSummarizer


router = APIRouter(
    tags=["users"],
)

logger = get_logger(__name__)


async def _get_user_by_id_or_username(db: AsyncSession, id_or_username: str) -> UserModel:
    if id_or_username.isdigit():
        condition = UserModel.id == int(id_or_username)
    else:
        condition = UserModel.username == id_or_username

    result = await db.scalars(
        select(UserModel).where(condition).order_by(UserModel.id)
    )
    user = result.first()

    if not user:
        raise NotFound("User not found")

    return user


async def _get_user_by_username(db: AsyncSession, username: str) -> UserModel:
    result = await db.scalars(
        select(UserModel).where(UserModel.username == username).order_by(UserModel.id)
    )
    user = result.first()

    if not user:
        raise NotFound("User not found")

    return user


@router.post("/register", response_model=UserMessage, status_code=status.HTTP_201_CREATED)
async def register(
        user: UserCreate,
        db: AsyncSession = Depends(get_async_db)
):
    """
    Create a new user
    """

    db_user = UserModel(
        email=user.email,
        username=user.username,
        hashed_password=hash_password(user.password),
        role=user.role.value,
    )

    db.add(db_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateError("Email is already registered")
    await db.refresh(db_user)

    logger.info("Registered user %s", db_user.id)

    return UserMessage(
        message="User registered successfully",
        user=UserSchema.model_validate(db_user),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
        credentials: UserLogin,
        db: AsyncSession = Depends(get_async_db)
):
    """
    Authenticates user and returns JWT access token
    """

    result = await db.scalars(
        select(UserModel).where(UserModel.email == credentials.email)
    )
    user = result.first()

    # Same error for unknown email and wrong password
    if not user or not verify_password(credentials.password, str(user.hashed_password)):
        raise InvalidCredentials("Invalid email or password")

    return LoginResponse(
        message="Login successful",
        access_token=create_user_token(user),
        user=UserSchema.model_validate(user),
    )


@router.post("/logout", response_model=Message)
async def logout(
        current_user: UserModel = Depends(get_current_user),
):
    """
    Tokens are stateless, the client just discards its copy
    """
    return Message(message="Logout successful")


@router.get("/user/{username}/bookshelf", response_model=Bookshelf)
async def get_bookshelf(
        username: str,
        current_user: UserModel = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_db),
        service: PreferenceService = Depends(get_preference_service),
):
    """
    Get every book a user has liked, newest first
    """

    user = await _get_user_by_username(db, username)
    entries = await service.list_bookshelf(user.id)

    return Bookshelf(
        user=ShelfOwner(id=user.id, username=user.username),
        books=[ShelfBook.model_validate(e) for e in entries],
        total_books=len(entries),
    )


@router.get("/user/{username}/preferences", response_model=PreferenceList)
async def get_preferences(
        username: str,
        insight: bool = Query(False, description="Ask Gemini for a short reading insight"),
        current_user: UserModel = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_db),
        service: PreferenceService = Depends(get_preference_service),
        summarizer: BookSummarizer = Depends(get_summarizer),
):
    """
    Get a user's subject preferences, heaviest first
    """

    user = await _get_user_by_username(db, username)
    preferences = await service.list_preferences(user.id)

    reading_insight = None
    if insight and preferences:
        reading_insight = await summarizer.reading_insight([p.subject for p in preferences])

    return PreferenceList(
        preferences=[PreferenceItem.model_validate(p) for p in preferences],
        insight=reading_insight,
    )


@router.get("/user/{id_or_username}", response_model=UserDetail)
async def get_user(
        id_or_username: str,
        current_user: UserModel = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_db),
):
    """
    Get a user by ID or username, along with the books they liked
    """

    user = await _get_user_by_id_or_username(db, id_or_username)

    result = await db.scalars(
        select(BookModel)
        .join(LikeModel, LikeModel.book_id == BookModel.id)
        .where(LikeModel.user_id == user.id)
        .order_by(LikeModel.created_at, LikeModel.id)
    )

    return UserDetail(
        id=user.id,
        email=user.email,
        username=user.username,
        role=user.role,
        created_at=user.created_at,
        books=[LikedBook.model_validate(b) for b in result.all()],
    )


@router.patch("/user/{user_id}", response_model=UserSchema)
async def update_user(
        user_id: int,
        data: UserUpdate,
        current_user: UserModel = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_db),
):
    """
    Update a user's username
    """

    result = await db.scalars(
        select(UserModel).where(UserModel.id == user_id)
    )
    user = result.first()

    if not user:
        raise NotFound("User not found")

    if not can_act_on(current_user, user.id):
        raise Forbidden("You can only modify your own resources")

    user.username = data.username

    db.add(user)
    await db.commit()
    await db.refresh(user)

    return user


@router.delete("/user/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
        user_id: int,
        current_user: UserModel = Depends(get_current_user),
        db: AsyncSession = Depends(get_async_db),
):
    """
    Delete a user; their likes and preferences go with them
    """

    result = await db.scalars(
        select(UserModel).where(UserModel.id == user_id)
    )
    user = result.first()

    if not user:
        raise NotFound("User not found")

    if not can_act_on(current_user, user.id):
        raise Forbidden("You can only modify your own resources")

    await db.delete(user)
    await db.commit()

    logger.info("Deleted user %s", user_id)
    return None
