from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import User as UserModel, Like as LikeModel
from app.schemas.admin import UserOut
from app.depends import get_async_db
from app.auth import get_current_admin


router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


@router.get("/users", response_model=list[UserOut])
async def get_users(
        admin: UserModel = Depends(get_current_admin),
        db: AsyncSession = Depends(get_async_db),
):
    """
    Returns a list of all users with how many books each has liked
    """

    result = await db.execute(
        select(UserModel, func.count(LikeModel.id))
        .outerjoin(LikeModel, LikeModel.user_id == UserModel.id)
        .group_by(UserModel.id)
        .order_by(UserModel.id)
    )

    return [
        UserOut(
            id=user.id,
            email=user.email,
            username=user.username,
            role=user.role,
            created_at=user.created_at,
            total_likes=total_likes,
        )
        for user, total_likes in result.all()
    ]
