import httpx

from app.config import OPEN_LIBRARY_URL, OPEN_LIBRARY_TIMEOUT
from app.exceptions import NotFound, UpstreamError
from app.log import get_logger

BASE_URL = OPEN_LIBRARY_URL
COVERS_URL = "https://covers.openlibrary.org"

SEARCH_FIELDS = "key,title,author_name,cover_i,first_publish_year"

logger = get_logger(__name__)


def cover_url(cover_id: int | str | None, size: str = "M") -> str | None:
    """
    Builds a cover image URL. Size is S, M or L
    """
    if not cover_id:
        return None
    return f"{COVERS_URL}/b/id/{cover_id}-{size}.jpg"


def work_key(work_id: str) -> str:
    # Accepts both "OL123W" and "/works/OL123W"
    return work_id if work_id.startswith("/works/") else f"/works/{work_id}"


def create_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=BASE_URL, timeout=OPEN_LIBRARY_TIMEOUT, follow_redirects=True)


class OpenLibraryService:
    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def search_books(self, query: str, limit: int = 20, page: int = 1) -> dict:
        """
        Performs a book search in Open Library
        """
        try:
            response = await self.client.get(
                "/search.json",
                params={"q": query, "fields": SEARCH_FIELDS, "limit": limit, "page": page}
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Open Library search failed for %r: %s", query, exc)
            raise UpstreamError("Failed to search the book catalog") from exc


    async def get_work(self, work_id: str) -> dict:
        """
        Returns the raw work record (title, subjects, description, covers...)
        """
        key = work_key(work_id)

        try:
            response = await self.client.get(f"{key}.json")
        except httpx.HTTPError as exc:
            logger.warning("Open Library request for %s failed: %s", key, exc)
            raise UpstreamError("Failed to fetch book from the catalog") from exc

        if response.status_code == 404:
            raise NotFound("Book not found")

        try:
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Open Library returned an error for %s: %s", key, exc)
            raise UpstreamError("Failed to fetch book from the catalog") from exc


    async def get_author_name(self, author_key: str) -> str | None:
        """
        Returns an author's display name, or None if it cannot be fetched
        """
        try:
            response = await self.client.get(f"{author_key}.json")
            response.raise_for_status()
            return response.json().get("name")
        except (httpx.HTTPError, ValueError):
            return None
