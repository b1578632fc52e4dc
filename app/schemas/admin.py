from pydantic import Field, EmailStr
from datetime import datetime

from app.schemas.base import CamelModel


class UserOut(CamelModel):
    """
    Schema representing a user for admin responses
    """
    id: int = Field(description="ID of the user")
    email: EmailStr = Field(description="Email address of the user")
    username: str = Field(description="Username of the user")
    role: str = Field(description="Role of the user")
    created_at: datetime | None = Field(None, title="Created at")
    total_likes: int = Field(0, description="Number of liked books")
