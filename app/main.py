from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import CORS_ORIGINS, GEMINI_API_KEY, GEMINI_MODEL
from app.database import create_tables
from app.exceptions import register_exception_handlers
from app.log import configure_logging, get_logger
from app.routers import admin, books, users
from app.services.open_library import OpenLibraryService, create_client
from app.services.summarizer import BookSummarizer

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()

    # One HTTP client for the whole process, shared by every request
    async with create_client() as client:
        app.state.open_library_service = OpenLibraryService(client)
        app.state.summarizer = BookSummarizer(api_key=GEMINI_API_KEY, model_name=GEMINI_MODEL)
        logger.info("Bookshelf API started")
        yield

    logger.info("Bookshelf API stopped")


def create_app() -> FastAPI:
    app = FastAPI(title="Bookshelf API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(users.router)
    app.include_router(books.router)
    app.include_router(admin.router)

    return app


app = create_app()
