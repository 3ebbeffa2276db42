"""
Article endpoint tests - covers the full CRUD lifecycle over HTTP,
pagination, ownership, tag association, and the response envelope.

Each test creates the users, tags and articles it needs via the API, so
test order does not matter.
"""
import re

import pytest
from httpx import AsyncClient

ARTICLE = {
    "title": "When you love",
    "body": "body exercise is good and better",
    "description": "Physical and health",
}


async def _create_article(client: AsyncClient, headers: dict, **overrides) -> dict:
    resp = await client.post("/api/v1/articles", json={**ARTICLE, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["article"]


# ---------------------------------------------------------------------------
# Infrastructure / health
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_article(async_client: AsyncClient, signup, make_tags):
    headers = await signup("writer")
    await make_tags(headers, "python", "health")

    resp = await async_client.post(
        "/api/v1/articles",
        json={**ARTICLE, "tags": ["python", "health"], "img_url": "https://img.example.com/a.png"},
        headers=headers,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "article created successfully"
    article = data["article"]
    assert re.fullmatch(r"when-you-love-[0-9a-f-]{36}", article["slug"])
    assert article["body"] == ARTICLE["body"]
    assert article["img_url"] == "https://img.example.com/a.png"
    assert article["read_time"] == 1
    assert article["user_id"] == int(headers["X-User-Id"])
    assert article["author"]["username"] == "writer"
    assert {t["name"] for t in data["tags"]} == {"python", "health"}
    assert article["created_at"] is not None


@pytest.mark.asyncio
async def test_create_article_requires_authentication(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/articles", json=ARTICLE)
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_create_article_with_bad_token(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/articles", json=ARTICLE, headers={"Authorization": "Bearer not-a-token"}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_article_without_title(async_client: AsyncClient, signup):
    headers = await signup("notitle")
    resp = await async_client.post(
        "/api/v1/articles",
        json={"body": ARTICLE["body"], "description": ARTICLE["description"]},
        headers=headers,
    )
    assert resp.status_code == 422
    data = resp.json()
    assert data["success"] is False
    assert set(data["errors"]) == {"title", "slug"}


@pytest.mark.asyncio
async def test_create_article_without_body(async_client: AsyncClient, signup):
    headers = await signup("nobody")
    resp = await async_client.post(
        "/api/v1/articles",
        json={"title": ARTICLE["title"], "description": ARTICLE["description"]},
        headers=headers,
    )
    assert resp.status_code == 422
    assert set(resp.json()["errors"]) == {"body"}


@pytest.mark.asyncio
async def test_create_article_without_description(async_client: AsyncClient, signup):
    headers = await signup("nodesc")
    resp = await async_client.post(
        "/api/v1/articles",
        json={"title": ARTICLE["title"], "body": ARTICLE["body"]},
        headers=headers,
    )
    assert resp.status_code == 422
    assert set(resp.json()["errors"]) == {"description"}


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_articles_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["articles"] == []
    assert data["pages"] == 0


@pytest.mark.asyncio
async def test_list_articles_includes_tags_and_likes(async_client: AsyncClient, signup, make_tags):
    headers = await signup("lister")
    await make_tags(headers, "travel")
    article = await _create_article(async_client, headers, tags=["travel"])
    await async_client.put(f"/api/v1/articles/{article['slug']}/like", json={"like": True}, headers=headers)

    resp = await async_client.get("/api/v1/articles")
    listed = resp.json()["articles"]
    assert len(listed) == 1
    assert [t["name"] for t in listed[0]["tags"]] == ["travel"]
    assert len(listed[0]["likes"]) == 1
    assert listed[0]["likes"][0]["like"] is True


@pytest.mark.asyncio
async def test_list_invalid_page_falls_back_to_first(async_client: AsyncClient, signup):
    headers = await signup("pager")
    await _create_article(async_client, headers)

    for page in ("abc", "0", "-2"):
        resp = await async_client.get(f"/api/v1/articles?page={page}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["page"] == 1
        assert len(data["articles"]) == 1


@pytest.mark.asyncio
async def test_list_my_articles(async_client: AsyncClient, signup):
    alice = await signup("alice")
    bob = await signup("bob")
    await _create_article(async_client, alice, title="Alice writes")
    await _create_article(async_client, bob, title="Bob writes")

    resp = await async_client.get("/api/v1/articles/mine", headers=alice)
    assert resp.status_code == 200
    data = resp.json()
    assert [a["title"] for a in data["articles"]] == ["Alice writes"]
    assert data["pages"] == 1


@pytest.mark.asyncio
async def test_list_my_articles_requires_authentication(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles/mine")
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Get by slug
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_article_by_slug(async_client: AsyncClient, signup, make_tags):
    headers = await signup("reader")
    await make_tags(headers, "python")
    created = await _create_article(async_client, headers, tags=["python"])

    resp = await async_client.get(f"/api/v1/articles/{created['slug']}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    article = data["article"]
    assert article["id"] == created["id"]
    assert [t["name"] for t in article["tags"]] == ["python"]
    assert article["comments"] == []
    assert article["likes"] == []
    assert article["author"]["username"] == "reader"


@pytest.mark.asyncio
async def test_get_unknown_slug(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"message": "article does not exist", "success": False}


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_article(async_client: AsyncClient, signup, make_tags):
    headers = await signup("editor")
    await make_tags(headers, "old", "new-a", "new-b")
    created = await _create_article(async_client, headers, tags=["old"])

    resp = await async_client.put(
        f"/api/v1/articles/{created['slug']}",
        json={"title": "Updated Title", "body": "word " * 650, "tags": ["new-a", "new-b"]},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "article updated successfully"
    assert data["article"]["title"] == "Updated Title"
    assert data["article"]["read_time"] == 4
    assert data["article"]["slug"] == created["slug"]
    assert {t["name"] for t in data["tags"]} == {"new-a", "new-b"}

    # The replacement is persisted, not just echoed.
    resp = await async_client.get(f"/api/v1/articles/{created['slug']}")
    assert {t["name"] for t in resp.json()["article"]["tags"]} == {"new-a", "new-b"}


@pytest.mark.asyncio
async def test_update_article_not_owner(async_client: AsyncClient, signup):
    owner = await signup("owner")
    intruder = await signup("intruder")
    created = await _create_article(async_client, owner)

    resp = await async_client.put(
        f"/api/v1/articles/{created['slug']}", json={"title": "Hijacked"}, headers=intruder
    )
    assert resp.status_code == 404

    resp = await async_client.get(f"/api/v1/articles/{created['slug']}")
    assert resp.json()["article"]["title"] == ARTICLE["title"]


@pytest.mark.asyncio
async def test_update_nonexistent_article(async_client: AsyncClient, signup):
    headers = await signup("ghostwriter")
    resp = await async_client.put("/api/v1/articles/ghost", json={"title": "Ghost"}, headers=headers)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_article(async_client: AsyncClient, signup, make_tags, db_session):
    headers = await signup("deleter")
    await make_tags(headers, "python")
    created = await _create_article(async_client, headers, tags=["python"])

    resp = await async_client.delete(f"/api/v1/articles/{created['slug']}", headers=headers)
    assert resp.status_code == 204

    resp = await async_client.get(f"/api/v1/articles/{created['slug']}")
    assert resp.status_code == 404

    from sqlalchemy import func, select
    from app.models import article_tags

    remaining = await db_session.execute(
        select(func.count()).select_from(article_tags).where(article_tags.c.article_id == created["id"])
    )
    assert remaining.scalar_one() == 0


@pytest.mark.asyncio
async def test_delete_article_not_owner(async_client: AsyncClient, signup):
    owner = await signup("keeper")
    intruder = await signup("vandal")
    created = await _create_article(async_client, owner)

    resp = await async_client.delete(f"/api/v1/articles/{created['slug']}", headers=intruder)
    assert resp.status_code == 404

    resp = await async_client.get(f"/api/v1/articles/{created['slug']}")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_delete_nonexistent_article(async_client: AsyncClient, signup):
    headers = await signup("nothing")
    resp = await async_client.delete("/api/v1/articles/ghost", headers=headers)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Response headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_response_timing_headers(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert "x-response-time-ms" in resp.headers
    assert int(resp.headers["x-query-count"]) == 0
