from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from uuid import UUID
from inzozi.models.role import AppRole


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str
    phone: Optional[str] = None
    role: AppRole = AppRole.USER
    admin_key: Optional[str] = Field(None, description="Required when registering as admin")


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    is_approved: bool = False
    roles: List[str] = []


class UserProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)
