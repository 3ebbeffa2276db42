"""Like service - one like flag per (user, article)."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import cache
from app.models import Article, Like
from app.services.serializers import like_to_dict


async def set_like(db: AsyncSession, slug: str, user_id: int, like: bool) -> dict | None:
    """
    Record *like* for *user_id* on the article *slug*, replacing any
    earlier flag.  Returns None when the article does not exist.
    """
    result = await db.execute(select(Article.id).where(Article.slug == slug))
    article_id = result.scalar_one_or_none()
    if article_id is None:
        return None

    result = await db.execute(
        select(Like).where(Like.article_id == article_id, Like.user_id == user_id)
    )
    record = result.scalar_one_or_none()
    if record is None:
        record = Like(article_id=article_id, user_id=user_id, like=like)
        db.add(record)
    else:
        record.like = like
    await db.flush()

    await cache.invalidate_article(slug)
    return like_to_dict(record)
