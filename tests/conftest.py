from __future__ import annotations

import os

# Must be set before anything from app is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"

from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.auth import hash_password, create_user_token
from app.database import Base, enable_sqlite_foreign_keys
from app.depends import get_async_db, get_open_library_service, get_summarizer
from app.exceptions import NotFound
from app.main import create_app
from app.models import User
from app.services.summarizer import BookSummarizer


class FakeCatalog:
    """In-memory stand-in for OpenLibraryService."""

    def __init__(self):
        self.works: dict[str, dict] = {}
        self.authors: dict[str, str] = {}
        self.search_result: dict = {"numFound": 0, "docs": []}
        self.search_calls: list[dict] = []
        self.error: Exception | None = None

    def add_work(self, olid: str, title: str = "A Book", subjects=None, **extra) -> dict:
        work = {"key": f"/works/{olid}", "title": title, **extra}
        if subjects is not None:
            work["subjects"] = subjects
        self.works[olid] = work
        return work

    async def search_books(self, query: str, limit: int = 20, page: int = 1) -> dict:
        if self.error:
            raise self.error
        self.search_calls.append({"query": query, "limit": limit, "page": page})
        return self.search_result

    async def get_work(self, work_id: str) -> dict:
        if self.error:
            raise self.error
        olid = work_id.split("/")[-1]
        if olid not in self.works:
            raise NotFound("Book not found")
        return self.works[olid]

    async def get_author_name(self, author_key: str) -> str | None:
        return self.authors.get(author_key)


class FakeGeminiClient:
    """Mimics client.aio.models.generate_content of a google-genai Client."""

    def __init__(self, text: str = "A gripping tale.", error: Exception | None = None):
        self.text = text
        self.error = error
        self.prompts: list[str] = []
        self.models_used: list[str] = []
        self.aio = SimpleNamespace(models=self)

    async def generate_content(self, model: str, contents: str):
        self.models_used.append(model)
        self.prompts.append(contents)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def gemini_client():
    return FakeGeminiClient()


@pytest.fixture
def summarizer(gemini_client):
    return BookSummarizer(client=gemini_client)


@pytest.fixture
def app(session_maker, catalog, summarizer):
    application = create_app()

    async def override_db():
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_async_db] = override_db
    application.dependency_overrides[get_open_library_service] = lambda: catalog
    application.dependency_overrides[get_summarizer] = lambda: summarizer
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def make_user(session_maker):
    async def _make_user(
        email: str = "reader@example.com",
        username: str = "reader",
        password: str = "password123",
        role: str = "user",
    ) -> User:
        async with session_maker() as session:
            user = User(
                email=email,
                username=username,
                hashed_password=hash_password(password),
                role=role,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _headers


@pytest.fixture
def count_rows(session_maker):
    async def _count(model, *conditions) -> int:
        async with session_maker() as session:
            return await session.scalar(select(func.count()).select_from(model).where(*conditions))

    return _count
