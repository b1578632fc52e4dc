import enum
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, BCRYPT_ROUNDS
from app.depends import get_async_db
from app.exceptions import Unauthenticated, Forbidden
from app.models.users import User as UserModel


# auto_error is off so a missing header goes through our own error translation
bearer_scheme = HTTPBearer(auto_error=False)


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """
    Hashes a password with a fresh salt
    """
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Checks a plain password against a stored hash
    """
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Creates a signed JWT access token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "token_type": "access"})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_user_token(user: UserModel) -> str:
    return create_access_token(
        data={
            "sub": user.email,
            "role": user.role,
            "id": user.id}
    )


def decode_access_token(token: str) -> dict:
    """
    Validates signature, expiry and token type and returns the payload
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except jwt.PyJWTError:
        raise Unauthenticated("Invalid token")

    if payload.get("token_type") != "access" or payload.get("id") is None:
        raise Unauthenticated("Invalid token")

    return payload


async def get_current_user(
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
        db: AsyncSession = Depends(get_async_db),
) -> UserModel:
    """
    Resolves the bearer token to a user that still exists
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Please login first")

    payload = decode_access_token(credentials.credentials)

    result = await db.scalars(
        select(UserModel).where(UserModel.id == payload["id"])
    )
    user = result.first()

    if user is None:
        raise Unauthenticated("User not found")

    return user


def has_role(user: UserModel, *roles: Role) -> bool:
    # Admin has access to everything
    if user.role == Role.ADMIN.value:
        return True
    return user.role in {r.value for r in roles}


def can_act_on(actor: UserModel, owner_id: int) -> bool:
    """
    Whether actor may modify a resource owned by owner_id
    """
    return actor.role == Role.ADMIN.value or actor.id == owner_id


def require_role(*roles: Role):
    """
    Builds a dependency that only lets through users holding one of roles
    """
    async def dependency(current_user: UserModel = Depends(get_current_user)) -> UserModel:
        if not has_role(current_user, *roles):
            raise Forbidden("You do not have permission to access this resource")
        return current_user

    return dependency


get_current_admin = require_role(Role.ADMIN)
