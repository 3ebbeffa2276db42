"""
ORM → plain dict converters shared by the service modules.

Responses are built from dicts rather than response models so that the
same structure can be cached in Redis as JSON without a second pass.
"""
from app.models import Article, Comment, Like, Tag, User


def _iso(value):
    return value.isoformat() if value else None


def user_public_to_dict(user: User | None) -> dict | None:
    """Fields safe to embed in any response (no email, no hash)."""
    if user is None:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
    }


def user_to_dict(user: User) -> dict:
    data = user_public_to_dict(user)
    data["email"] = user.email
    data["created_at"] = _iso(user.created_at)
    return data


def tag_to_dict(tag: Tag) -> dict:
    return {"id": tag.id, "name": tag.name}


def like_to_dict(like: Like) -> dict:
    return {
        "id": like.id,
        "user_id": like.user_id,
        "article_id": like.article_id,
        "like": like.like,
    }


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "body": comment.body,
        "article_id": comment.article_id,
        "user_id": comment.user_id,
        "created_at": _iso(comment.created_at),
        "author": user_public_to_dict(comment.author),
    }


def article_to_dict(article: Article) -> dict:
    """List view: the row plus its author, tags and likes."""
    return {
        "id": article.id,
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "body": article.body,
        "img_url": article.img_url,
        "read_time": article.read_time,
        "user_id": article.user_id,
        "created_at": _iso(article.created_at),
        "updated_at": _iso(article.updated_at),
        "author": user_public_to_dict(article.author),
        "tags": [tag_to_dict(t) for t in article.tags],
        "likes": [like_to_dict(l) for l in article.likes],
    }


def article_detail_to_dict(article: Article) -> dict:
    """Detail view: list view plus threaded comments with their authors."""
    data = article_to_dict(article)
    data["comments"] = [comment_to_dict(c) for c in article.comments]
    return data


def article_summary_to_dict(article: Article) -> dict:
    """Lightweight form embedded in a user profile."""
    return {
        "id": article.id,
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "read_time": article.read_time,
        "created_at": _iso(article.created_at),
    }
