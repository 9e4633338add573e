from pydantic import BaseModel, EmailStr, ConfigDict, Field

from app.schemas.role import Role


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    display_name: str | None = None
    phone: str | None = None
    role: Role


class UserCreate(BaseModel):
    email: EmailStr
    display_name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)
    password: str = Field(..., min_length=8)
    role_id: int | None = None  # If not provided, defaults to "tenant"


class Token(BaseModel):
    access_token: str
    token_type: str
    user: User
