from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from newsdesk.models.user import UserRole

USERNAME_PATTERN = r"^[a-z0-9_]+$"

class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    display_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr

    @field_validator("username", "email", mode="before")
    @classmethod
    def lowercase(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("display_name", mode="before")
    @classmethod
    def strip(cls, value):
        return value.strip() if isinstance(value, str) else value

class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    role: UserRole = Field(default=UserRole.READER, description="reader or author")

class UserLogin(BaseModel):
    username: str = Field(..., description="Username or email")
    password: str

class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None

    @field_validator("username", "email", mode="before")
    @classmethod
    def lowercase(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

class RoleUpdate(BaseModel):
    role: UserRole
    reason: str | None = Field(default=None, max_length=500)

class UserResponse(BaseModel):
    id: str
    username: str
    display_name: str
    email: str
    role: UserRole
    created_at: datetime
    last_login: datetime | None = None

    class Config:
        from_attributes = True

class AuthorSummary(BaseModel):
    id: str
    username: str
    display_name: str

    class Config:
        from_attributes = True

class RoleChangeResponse(BaseModel):
    id: str
    user_id: str
    old_role: UserRole
    new_role: UserRole
    changed_by: str
    reason: str | None = None
    changed_at: datetime

    class Config:
        from_attributes = True

class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserResponse
