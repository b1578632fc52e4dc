"""Tests for the catalog browsing and like endpoints."""
from __future__ import annotations

from app.exceptions import UpstreamError
from app.models import Like

LONG_DESCRIPTION = "A boy wizard discovers a hidden school of magic and the dark wizard who killed his parents. " * 2


async def test_list_books_shapes_and_paginates(client, catalog):
    catalog.search_result = {
        "numFound": 45,
        "docs": [
            {"key": "/works/OL1W", "title": "Dune", "author_name": ["Frank Herbert", "Other"], "cover_i": 3,
             "first_publish_year": 1965},
            {"key": "/works/OL2W", "title": "Nameless"},
        ],
    }

    response = await client.get("/", params={"query": "dune", "limit": 20, "page": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"currentPage": 2, "limit": 20, "totalResults": 45, "totalPages": 3}
    assert body["books"][0] == {
        "olid": "OL1W",
        "title": "Dune",
        "author": "Frank Herbert",
        "authors": ["Frank Herbert", "Other"],
        "coverUrl": "https://covers.openlibrary.org/b/id/3-M.jpg",
        "publishYear": 1965,
    }
    assert body["books"][1]["author"] == "Unknown Author"


async def test_list_books_defaults_and_clamping(client, catalog):
    await client.get("/")
    await client.get("/", params={"limit": 500, "page": 0})
    await client.get("/", params={"limit": 0})

    assert catalog.search_calls == [
        {"query": "all", "limit": 20, "page": 1},
        {"query": "all", "limit": 100, "page": 1},
        {"query": "all", "limit": 1, "page": 1},
    ]


async def test_list_books_non_numeric_pagination_uses_defaults(client, catalog):
    response = await client.get("/", params={"limit": "abc", "page": "x"})

    assert response.status_code == 200
    assert response.json()["pagination"]["limit"] == 20
    assert catalog.search_calls == [{"query": "all", "limit": 20, "page": 1}]


async def test_list_books_empty_query_is_passed_through(client, catalog):
    response = await client.get("/", params={"query": ""})

    assert response.status_code == 200
    assert catalog.search_calls == [{"query": "", "limit": 20, "page": 1}]


async def test_book_detail(client, catalog):
    catalog.add_work("OL1W", title="Dune", description="Spice.", subjects=["Fiction"], covers=[8])

    response = await client.get("/book/OL1W")

    assert response.status_code == 200
    body = response.json()
    assert body["olid"] == "OL1W"
    assert body["description"] == "Spice."
    assert body["aiSummary"] is None
    assert body["subjects"] == ["Fiction"]
    assert body["coverUrl"] == "https://covers.openlibrary.org/b/id/8-L.jpg"


async def test_book_detail_with_summary(client, catalog, gemini_client):
    catalog.add_work("OL1W", title="Harry Potter", description={"type": "/type/text", "value": LONG_DESCRIPTION})

    response = await client.get("/book/OL1W", params={"summarize": "true"})

    assert response.status_code == 200
    assert response.json()["aiSummary"] == gemini_client.text


async def test_book_detail_summary_failure_degrades(client, catalog, gemini_client):
    gemini_client.error = RuntimeError("model overloaded")
    catalog.add_work("OL1W", description=LONG_DESCRIPTION)

    response = await client.get("/book/OL1W", params={"summarize": "true"})

    assert response.status_code == 200
    assert response.json()["aiSummary"] is None


async def test_book_detail_not_found(client):
    response = await client.get("/book/OL404W")

    assert response.status_code == 404
    assert response.json() == {"error": "Book not found"}


async def test_like_requires_auth(client, catalog):
    catalog.add_work("OL1W")

    response = await client.post("/book/OL1W/like")

    assert response.status_code == 401


async def test_like_book(client, catalog, make_user, auth_headers, count_rows):
    user = await make_user()
    catalog.add_work("OL1W", title="Dune", subjects=["Science Fiction", " ", "Ecology"])

    response = await client.post("/book/OL1W/like", headers=auth_headers(user))

    assert response.status_code == 201
    assert response.json() == {
        "message": "Book liked successfully",
        "book": {"olid": "OL1W", "title": "Dune"},
        "preferencesUpdated": 2,
    }
    assert await count_rows(Like, Like.user_id == user.id) == 1


async def test_like_book_twice(client, catalog, make_user, auth_headers, count_rows):
    user = await make_user()
    catalog.add_work("OL1W")

    await client.post("/book/OL1W/like", headers=auth_headers(user))
    response = await client.post("/book/OL1W/like", headers=auth_headers(user))

    assert response.status_code == 400
    assert response.json()["error"] == "You have already liked this book"
    assert await count_rows(Like) == 1


async def test_like_unknown_book(client, make_user, auth_headers):
    user = await make_user()

    response = await client.post("/book/OL404W/like", headers=auth_headers(user))

    assert response.status_code == 404
    assert response.json()["error"] == "Book not found"


async def test_like_with_catalog_down(client, catalog, make_user, auth_headers):
    user = await make_user()
    catalog.error = UpstreamError()

    response = await client.post("/book/OL1W/like", headers=auth_headers(user))

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to reach the book catalog"
