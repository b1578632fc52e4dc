import asyncio
import math
import re

from app.services.open_library import OpenLibraryService, cover_url
from app.services.summarizer import BookSummarizer

DEFAULT_QUERY = "all"
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_int(value: int | str | None, default: int) -> int:
    """
    Reads a leading integer from a query value ("15abc" -> 15), default when there is none
    """
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(value or "")
    return int(match.group(1)) if match else default


def clamp_pagination(limit: int | str | None, page: int | str | None) -> tuple[int, int]:
    """
    Forces limit into [1, 100] and page into [1, inf)
    """
    limit = parse_int(limit, DEFAULT_LIMIT)
    page = parse_int(page, 1)
    return min(max(limit, 1), MAX_LIMIT), max(page, 1)


def total_pages(total_results: int, limit: int) -> int:
    return math.ceil(total_results / limit)


def normalize_description(description) -> str | None:
    # Open Library sends either a plain string or {"type": "/type/text", "value": "..."}
    if isinstance(description, dict):
        description = description.get("value")
    if isinstance(description, str) and description.strip():
        return description
    return None


def shape_search_doc(doc: dict) -> dict:
    authors = [a for a in doc.get("author_name") or [] if isinstance(a, str)]
    return {
        "olid": doc.get("key", "").split("/")[-1],
        "title": doc.get("title"),
        "author": authors[0] if authors else "Unknown Author",
        "authors": authors,
        "cover_url": cover_url(doc.get("cover_i"), "M"),
        "publish_year": doc.get("first_publish_year"),
    }


async def list_books(
        catalog: OpenLibraryService,
        query: str | None,
        limit: int | str | None,
        page: int | str | None,
) -> dict:
    """
    Returns one page of catalog search results
    """
    limit, page = clamp_pagination(limit, page)

    # An explicit empty query is passed through; only a missing one means "all"
    query = DEFAULT_QUERY if query is None else query

    results = await catalog.search_books(query=query, limit=limit, page=page)
    total_results = results.get("numFound", 0)

    return {
        "books": [shape_search_doc(doc) for doc in results.get("docs", [])],
        "pagination": {
            "current_page": page,
            "limit": limit,
            "total_results": total_results,
            "total_pages": total_pages(total_results, limit),
        },
    }


async def _resolve_authors(catalog: OpenLibraryService, work: dict) -> list[dict]:
    keys = [
        (a.get("author") or {}).get("key")
        for a in work.get("authors") or []
        if isinstance(a, dict)
    ]
    keys = [k for k in keys if k]

    # Fetch author names in parallel
    names = await asyncio.gather(*[catalog.get_author_name(k) for k in keys])

    return [{"key": key, "name": name or key} for key, name in zip(keys, names)]


async def get_book_detail(
        catalog: OpenLibraryService,
        summarizer: BookSummarizer | None,
        olid: str,
        want_summary: bool = False,
) -> dict:
    """
    Returns detailed book information by work OLID, optionally with an AI summary
    """
    work = await catalog.get_work(olid)

    title = work.get("title")
    subjects = [s for s in work.get("subjects") or [] if isinstance(s, str)]
    description = normalize_description(work.get("description"))
    covers = work.get("covers") or []

    ai_summary = None
    if want_summary and description and summarizer is not None:
        ai_summary = await summarizer.summarize(description, title or "", subjects)

    return {
        "olid": olid,
        "title": title,
        "description": description,
        "ai_summary": ai_summary,
        "subjects": subjects,
        "authors": await _resolve_authors(catalog, work),
        "cover_url": cover_url(covers[0] if covers else None, "L"),
        "first_publish_date": work.get("first_publish_date"),
        "links": work.get("links") or [],
    }
