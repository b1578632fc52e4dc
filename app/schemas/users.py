from datetime import datetime

from pydantic import BaseModel, Field, EmailStr, ConfigDict

from app.auth import Role
from app.schemas.base import CamelModel
from app.schemas.books import LikedBook


class UserCreate(BaseModel):
    """
    Schema for registering a new user
    """
    email: EmailStr = Field(..., description="Email address of the user")
    password: str = Field(..., min_length=6, description="Password, at least 6 characters")
    username: str = Field(..., min_length=1, description="Username of the user")
    role: Role = Field(Role.USER, description="Role of the user")


class UserLogin(BaseModel):
    email: str = Field(..., min_length=1, description="Email address of the user")
    password: str = Field(..., min_length=1, description="Password of the user")


class UserUpdate(BaseModel):
    """
    Schema for changing a user's username
    """
    username: str = Field(..., min_length=1, description="New username")


class User(BaseModel):
    """
    Public user fields
    """
    id: int = Field(..., description="ID of the user")
    email: EmailStr = Field(..., description="Email address of the user")
    username: str = Field(..., description="Username of the user")
    role: str = Field(..., description="Role of the user")

    model_config = ConfigDict(from_attributes=True)


class UserDetail(CamelModel):
    id: int
    email: str
    username: str
    role: str
    created_at: datetime | None = None
    books: list[LikedBook] = Field(default_factory=list, description="Books the user has liked")


class UserMessage(BaseModel):
    message: str
    user: User


class LoginResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    user: User


class Message(BaseModel):
    message: str
