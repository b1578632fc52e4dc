from app.models.users import User
from app.models.books import Book
from app.models.likes import Like
from app.models.preferences import Preference

__all__ = ["User", "Book", "Like", "Preference"]
