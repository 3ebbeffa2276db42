"""
Comment service - append-only comments on an article.

Comments cannot be edited or deleted through the API.  Each new comment
invalidates the parent article's cached detail view so the next read
includes it.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import cache
from app.models import Article, Comment, User
from app.schemas import CommentCreate
from app.services.serializers import comment_to_dict


async def add_comment(
    db: AsyncSession,
    slug: str,
    author: User,
    data: CommentCreate,
) -> dict | None:
    """
    Append a comment by *author* to the article *slug*.

    Returns the serialised comment (with its author's public fields), or
    None when the article does not exist.
    """
    result = await db.execute(select(Article.id).where(Article.slug == slug))
    article_id = result.scalar_one_or_none()
    if article_id is None:
        return None

    comment = Comment(body=data.body, article_id=article_id, user_id=author.id)
    comment.author = author
    db.add(comment)
    await db.flush()

    await cache.invalidate_article(slug)
    return comment_to_dict(comment)
