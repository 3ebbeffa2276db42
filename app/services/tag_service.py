"""Tag service - the vocabulary articles may be tagged with."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Tag
from app.schemas import TagCreate
from app.services.serializers import tag_to_dict


async def get_tags(db: AsyncSession) -> list[dict]:
    result = await db.execute(select(Tag).order_by(Tag.name))
    return [tag_to_dict(t) for t in result.scalars().all()]


async def create_tag(db: AsyncSession, data: TagCreate) -> dict:
    # Duplicate names surface as IntegrityError; the router maps it to 409.
    tag = Tag(name=data.name.strip())
    db.add(tag)
    await db.flush()
    return tag_to_dict(tag)
