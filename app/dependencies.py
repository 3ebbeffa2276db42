from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import AuthenticationError
from app.models import User
from app.repository import SqlArticleStore
from app.security import decode_access_token
from app.services.article_service import ArticleService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the requester from an ``Authorization: Bearer <token>``
    header.

    Raises ``AuthenticationError`` (401) when the header is missing, the
    token does not verify, or its user has been removed.
    """
    if credentials is None:
        raise AuthenticationError("authentication token is missing")

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise AuthenticationError("invalid or expired token")

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("user for this token no longer exists")
    return user


def get_article_service(db: AsyncSession = Depends(get_db)) -> ArticleService:
    """Build an ``ArticleService`` over the request's session."""
    return ArticleService(SqlArticleStore(db))
