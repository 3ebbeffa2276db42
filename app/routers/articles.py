from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_article_service, get_current_user
from app.errors import NotFoundError
from app.models import User
from app.schemas import ArticleCreate, ArticleUpdate, CommentCreate, LikeUpdate
from app.services import comment_service, like_service
from app.services.article_service import ArticleService

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

PAGE_QUERY = Query(None, description="Page number (1-based); invalid values mean page 1.")

@router.get("")
async def list_articles(
    page: str | None = PAGE_QUERY,
    service: ArticleService = Depends(get_article_service),
):
    result = await service.list_articles(page)
    return {"message": "articles retrieved successfully", "success": True, **result}

# Declared before "/{slug}" so "mine" is not captured as a slug.
@router.get("/mine")
async def list_my_articles(
    page: str | None = PAGE_QUERY,
    user: User = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
):
    result = await service.list_articles(page, owner_id=user.id)
    return {"message": "articles retrieved successfully", "success": True, **result}

@router.get("/{slug}")
async def get_article(slug: str, service: ArticleService = Depends(get_article_service)):
    article = await service.get_article(slug)
    return {"message": "article retrieved successfully", "success": True, "article": article}

@router.post("", status_code=201)
async def create_article(
    data: ArticleCreate,
    user: User = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
):
    article = await service.create_article(user.id, data)
    return {
        "message": "article created successfully",
        "success": True,
        "article": article,
        "tags": article["tags"],
    }

@router.put("/{slug}")
async def update_article(
    slug: str,
    data: ArticleUpdate,
    user: User = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
):
    article = await service.update_article(slug, user.id, data)
    return {
        "message": "article updated successfully",
        "success": True,
        "article": article,
        "tags": article["tags"],
    }

@router.delete("/{slug}", status_code=204)
async def delete_article(
    slug: str,
    user: User = Depends(get_current_user),
    service: ArticleService = Depends(get_article_service),
):
    await service.delete_article(slug, user.id)

@router.post("/{slug}/comments", status_code=201)
async def add_comment(
    slug: str,
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.add_comment(db, slug, user, data)
    if not comment:
        raise NotFoundError("article does not exist")
    return {"message": "comment added successfully", "success": True, "comment": comment}

@router.put("/{slug}/like")
async def like_article(
    slug: str,
    data: LikeUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    like = await like_service.set_like(db, slug, user.id, data.like)
    if not like:
        raise NotFoundError("article does not exist")
    return {"message": "like recorded", "success": True, "like": like}
