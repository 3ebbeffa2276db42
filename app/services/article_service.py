"""
Article service - business logic for the Article aggregate.

Design notes
------------
- ``ArticleService`` talks to persistence only through the
  ``ArticleStore`` handed to it, so the same logic runs against
  SQLAlchemy in production and an in-memory store in tests.
- Writes are validate-then-commit: mandatory fields are checked and
  every submitted tag is resolved before the article row is touched.
  A failure at any later step propagates to ``get_db``, which rolls the
  whole request back.
- List and detail reads go through the cache-aside pattern (Redis →
  fallback to the store).  Every write purges the list pages and the
  article's detail entry.
- Slugs are fixed at creation; title edits never rename the article.
"""
import logging
import math
import re
import unicodedata
import uuid

from app.cache import cache
from app.config import settings
from app.errors import MissingFieldsError, NotFoundError
from app.pagination import compute_offset, compute_total_pages, parse_page
from app.repository import ArticleStore
from app.schemas import ArticleCreate, ArticleUpdate
from app.services.serializers import article_detail_to_dict, article_to_dict

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

_MANDATORY_FIELDS = ("title", "body", "description")


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase ASCII slug derived from *text*."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def generate_slug(title: str) -> str:
    """
    ``<slugified-title>-<uuid4>``.  The random suffix keeps articles with
    identical titles apart without a uniqueness round-trip.
    """
    base = slugify(title)
    token = str(uuid.uuid4())
    return f"{base}-{token}" if base else token


def compute_read_time(body: str, words_per_minute: int | None = None) -> int:
    """Estimated minutes to read *body*; never less than one."""
    wpm = words_per_minute or settings.WORDS_PER_MINUTE
    return max(1, math.ceil(len(body.split()) / wpm))


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _check_mandatory(data: ArticleCreate) -> None:
    errors: dict[str, str] = {}
    for field in _MANDATORY_FIELDS:
        if _blank(getattr(data, field)):
            errors[field] = f"{field} cannot be null"
            # The slug is derived from the title, so it is missing too.
            if field == "title":
                errors["slug"] = "slug cannot be null"
    if errors:
        raise MissingFieldsError(errors)


def _list_cache_key(owner_id: int | None, page: int, page_size: int) -> str:
    scope = "all" if owner_id is None else f"user:{owner_id}"
    return f"articles:list:{scope}:{page}:{page_size}"


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ArticleService:
    def __init__(self, store: ArticleStore, page_size: int | None = None) -> None:
        self._store = store
        self._page_size = page_size or settings.ARTICLE_PAGE_SIZE

    async def create_article(self, user_id: int, data: ArticleCreate) -> dict:
        """
        Create an article owned by *user_id* and return its detail dict.

        Raises ``MissingFieldsError`` when title, body or description is
        absent and ``TagReferenceError`` when a tag name is unknown; in
        both cases nothing has been written.
        """
        _check_mandatory(data)
        tags = await self._store.resolve_tags(data.tags)

        article = await self._store.create(
            {
                "title": data.title,
                "body": data.body,
                "description": data.description,
                "img_url": data.img_url,
                "slug": generate_slug(data.title),
                "read_time": compute_read_time(data.body),
                "user_id": user_id,
            },
            tags,
        )
        await cache.invalidate_article()
        logger.info("Article %s created by user %s", article.slug, user_id)
        return article_detail_to_dict(article)

    async def list_articles(self, page=None, owner_id: int | None = None) -> dict:
        """
        Return one page of articles, newest first, with the total number
        of pages.  *page* is sanitised with ``parse_page``; a page past
        the end yields an empty list.

        Two statements run on a cache miss: COUNT, then the page SELECT
        with author/tags/likes loaded alongside.
        """
        page = parse_page(page)
        cache_key = _list_cache_key(owner_id, page, self._page_size)
        cached = await cache.get(cache_key)
        if cached:
            return cached

        total = await self._store.count(owner_id)
        pages = compute_total_pages(total, self._page_size)
        if page > pages:
            # Past the last page; the offset may not even fit a SQL integer.
            return {"articles": [], "pages": pages, "page": page}

        articles = await self._store.find_page(
            compute_offset(page, self._page_size), self._page_size, owner_id
        )
        data = {
            "articles": [article_to_dict(a) for a in articles],
            "pages": pages,
            "page": page,
        }
        await cache.set(cache_key, data, ttl=settings.CACHE_TTL_LIST)
        return data

    async def get_article(self, slug: str) -> dict:
        """Return the detail dict for *slug*; ``NotFoundError`` if there is none."""
        cache_key = f"articles:detail:{slug}"
        cached = await cache.get(cache_key)
        if cached:
            return cached

        article = await self._store.find_by_slug(slug, detail=True)
        if article is None:
            raise NotFoundError("article does not exist")

        data = article_detail_to_dict(article)
        await cache.set(cache_key, data, ttl=settings.CACHE_TTL_DETAIL)
        return data

    async def update_article(self, slug: str, user_id: int, data: ArticleUpdate) -> dict:
        """
        Apply the fields present in *data* to the article *slug* owned by
        *user_id*.

        ``tags`` omitted or null keeps the current set; a list replaces
        it (an empty list clears it).  Articles owned by someone else are
        reported as missing.
        """
        article = await self._store.find_by_slug(slug, owner_id=user_id, detail=True)
        if article is None:
            raise NotFoundError("article does not exist")

        changes = data.model_dump(exclude_unset=True)
        blank = {
            field: f"{field} cannot be empty"
            for field in _MANDATORY_FIELDS
            if changes.get(field) is not None and _blank(changes[field])
        }
        if blank:
            raise MissingFieldsError(blank)

        tag_names = changes.pop("tags", None)
        tags = await self._store.resolve_tags(tag_names) if tag_names is not None else None

        # Mandatory columns cannot be nulled out; img_url can.
        fields = {k: v for k, v in changes.items() if v is not None or k == "img_url"}
        if "body" in fields:
            fields["read_time"] = compute_read_time(fields["body"])

        if fields:
            await self._store.update_fields(article, fields)
        if tags is not None:
            await self._store.set_tag_associations(article, tags)

        await cache.invalidate_article(slug)
        logger.info("Article %s updated (%s)", slug, ", ".join(sorted(changes)) or "no changes")
        return article_detail_to_dict(article)

    async def delete_article(self, slug: str, user_id: int) -> None:
        article = await self._store.find_by_slug(slug, owner_id=user_id)
        if article is None:
            raise NotFoundError("article does not exist")

        await self._store.delete(article)
        await cache.invalidate_article(slug)
        logger.info("Article %s deleted by user %s", slug, user_id)
