from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.errors import ConflictError, NotFoundError
from app.schemas import UserCreate, UserLogin
from app.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

@router.post("", status_code=201)
async def signup(data: UserCreate, db: AsyncSession = Depends(get_db)):
    try:
        result = await user_service.create_user(db, data)
    except IntegrityError:
        raise ConflictError("A user with this username or email already exists")
    return {"message": "You have successfully signed up!", "success": True, **result}

@router.post("/login")
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    result = await user_service.login(db, data)
    return {"message": "successfully logged in!", "success": True, **result}

@router.get("/{username}")
async def get_profile(username: str, db: AsyncSession = Depends(get_db)):
    profile = await user_service.get_profile(db, username)
    if not profile:
        raise NotFoundError("user does not exist")
    return {"message": "profile retrieved successfully", "success": True, "profile": profile}
