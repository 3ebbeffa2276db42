from pydantic import BaseModel, Field


# --- Tag ---

class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)


# --- User ---

class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: str = Field(max_length=255)
    password: str = Field(min_length=6, max_length=128)
    bio: str | None = None
    image: str | None = Field(None, max_length=500)


class UserLogin(BaseModel):
    email_or_username: str
    password: str


# --- Comment ---

class CommentCreate(BaseModel):
    body: str = Field(min_length=1)


# --- Like ---

class LikeUpdate(BaseModel):
    like: bool = True


# --- Article ---

class ArticleCreate(BaseModel):
    # Mandatory fields are checked by the service so that every missing
    # field is reported together in one response.
    title: str | None = Field(None, max_length=300)
    body: str | None = None
    description: str | None = Field(None, max_length=500)
    img_url: str | None = Field(None, max_length=500)
    tags: list[str] = []  # names of existing tags


class ArticleUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    body: str | None = Field(None, min_length=1)
    description: str | None = Field(None, min_length=1, max_length=500)
    img_url: str | None = Field(None, max_length=500)
    tags: list[str] | None = None
