"""
Persistence port for the Article aggregate.

``ArticleService`` receives an ``ArticleStore`` at construction instead of
reaching for a global session or model registry.  Production code uses
``SqlArticleStore``; tests swap in an in-memory implementation of the
same interface.

Stores flush but never commit: the transaction boundary belongs to the
``get_db`` dependency, which rolls back everything on any error.
"""
from abc import ABC, abstractmethod
from typing import Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from app.errors import TagReferenceError
from app.models import Article, Comment, Tag, User


class ArticleStore(ABC):
    """Article persistence operations needed by ``ArticleService``."""

    @abstractmethod
    async def find_by_slug(
        self, slug: str, owner_id: int | None = None, detail: bool = False
    ) -> Article | None:
        """
        Return the article with *slug*, or None.

        When *owner_id* is given the lookup only matches articles owned by
        that user.  Tags are always loaded; *detail* also loads the
        author, likes, and comments with their authors.
        """

    @abstractmethod
    async def count(self, owner_id: int | None = None) -> int:
        ...

    @abstractmethod
    async def find_page(
        self, offset: int, limit: int, owner_id: int | None = None
    ) -> Sequence[Article]:
        """Newest first, with author, tags and likes loaded."""

    @abstractmethod
    async def resolve_tags(self, names: list[str]) -> list[Tag]:
        """
        Return the Tag rows for *names* in request order (duplicates
        collapsed).  Raises ``TagReferenceError`` listing every unknown
        name.  Never writes.
        """

    @abstractmethod
    async def create(self, fields: dict, tags: list[Tag]) -> Article:
        ...

    @abstractmethod
    async def update_fields(self, article: Article, fields: dict) -> Article:
        ...

    @abstractmethod
    async def set_tag_associations(self, article: Article, tags: list[Tag]) -> None:
        """Replace the article's whole tag set with *tags*."""

    @abstractmethod
    async def delete(self, article: Article) -> None:
        """Detach every tag, then remove the article row."""


def _unique(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


class SqlArticleStore(ArticleStore):
    """``ArticleStore`` backed by a SQLAlchemy ``AsyncSession``."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_by_slug(self, slug, owner_id=None, detail=False):
        q = select(Article).where(Article.slug == slug)
        if owner_id is not None:
            q = q.where(Article.user_id == owner_id)

        options = [selectinload(Article.tags)]
        if detail:
            options += [
                joinedload(Article.author),
                selectinload(Article.likes),
                selectinload(Article.comments).joinedload(Comment.author),
            ]
        result = await self._db.execute(q.options(*options))
        return result.unique().scalar_one_or_none()

    async def count(self, owner_id=None):
        q = select(func.count()).select_from(Article)
        if owner_id is not None:
            q = q.where(Article.user_id == owner_id)
        return (await self._db.execute(q)).scalar_one()

    async def find_page(self, offset, limit, owner_id=None):
        q = (
            select(Article)
            .options(
                joinedload(Article.author),
                selectinload(Article.tags),
                selectinload(Article.likes),
            )
            .order_by(desc(Article.created_at), desc(Article.id))
            .offset(offset)
            .limit(limit)
        )
        if owner_id is not None:
            q = q.where(Article.user_id == owner_id)
        result = await self._db.execute(q)
        return result.unique().scalars().all()

    async def resolve_tags(self, names):
        names = _unique(names)
        if not names:
            return []
        result = await self._db.execute(select(Tag).where(Tag.name.in_(names)))
        found = {tag.name: tag for tag in result.scalars().all()}
        missing = [name for name in names if name not in found]
        if missing:
            raise TagReferenceError(missing)
        return [found[name] for name in names]

    async def create(self, fields, tags):
        article = Article(**fields)
        article.author = await self._db.get(User, fields["user_id"])
        article.tags = list(tags)
        article.likes = []
        article.comments = []
        self._db.add(article)
        await self._db.flush()
        return article

    async def update_fields(self, article, fields):
        for field, value in fields.items():
            setattr(article, field, value)
        await self._db.flush()
        return article

    async def set_tag_associations(self, article, tags):
        article.tags = list(tags)
        await self._db.flush()

    async def delete(self, article):
        article.tags.clear()
        await self._db.flush()
        await self._db.delete(article)
        await self._db.flush()
