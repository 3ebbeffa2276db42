from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.dependencies import get_current_user
from app.errors import ConflictError
from app.models import User
from app.schemas import TagCreate
from app.services import tag_service

router = APIRouter(prefix="/api/v1/tags", tags=["tags"])

@router.get("")
async def list_tags(db: AsyncSession = Depends(get_db)):
    tags = await tag_service.get_tags(db)
    return {"message": "tags retrieved successfully", "success": True, "tags": tags}

@router.post("", status_code=201)
async def create_tag(
    data: TagCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        tag = await tag_service.create_tag(db, data)
    except IntegrityError:
        raise ConflictError("A tag with this name already exists")
    return {"message": "tag created successfully", "success": True, "tag": tag}
