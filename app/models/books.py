from datetime import datetime

from sqlalchemy import Integer, String, DateTime, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Book(Base):
    """
    Local copy of an Open Library work, created the first time someone likes it.
    """
    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    olid: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    cover_url: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    likes: Mapped[list["Like"]] = relationship(back_populates="book", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("olid", name="uq_book_olid"),
    )
