"""
User service - signup, login and public profiles.

Username and email uniqueness is enforced by the database; the router
translates the resulting ``IntegrityError`` into a 409.
"""
import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.errors import InvalidCredentialsError, NotFoundError
from app.models import User
from app.schemas import UserCreate, UserLogin
from app.security import create_access_token, hash_password, verify_password
from app.services.serializers import article_summary_to_dict, user_to_dict

logger = logging.getLogger(__name__)


async def create_user(db: AsyncSession, data: UserCreate) -> dict:
    """Register a user and return ``{"user": ..., "token": ...}``."""
    user = User(
        username=data.username,
        email=data.email,
        password_hash=hash_password(data.password),
        bio=data.bio,
        image=data.image,
    )
    db.add(user)
    await db.flush()
    logger.info("User %s signed up", user.username)
    return {"user": user_to_dict(user), "token": create_access_token(user.id)}


async def login(db: AsyncSession, data: UserLogin) -> dict:
    """
    Authenticate by email or username.

    Raises ``NotFoundError`` for an unknown identifier and
    ``InvalidCredentialsError`` for a wrong password.
    """
    q = select(User).where(
        or_(User.username == data.email_or_username, User.email == data.email_or_username)
    )
    user = (await db.execute(q)).scalar_one_or_none()
    if user is None:
        raise NotFoundError("Email/Username does not exist")
    if not verify_password(data.password, user.password_hash):
        raise InvalidCredentialsError("Incorrect Password")
    return {"user": user_to_dict(user), "token": create_access_token(user.id)}


async def get_profile(db: AsyncSession, username: str) -> dict | None:
    """
    Return the public profile for *username* with summaries of their
    articles, or None when no such user exists.
    """
    q = (
        select(User)
        .where(User.username == username)
        .options(selectinload(User.articles))
    )
    user = (await db.execute(q)).scalar_one_or_none()
    if user is None:
        return None

    data = user_to_dict(user)
    del data["email"]
    data["articles"] = [article_summary_to_dict(a) for a in user.articles]
    return data
