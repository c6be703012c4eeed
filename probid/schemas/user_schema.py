# probid/schemas/user_schema.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from probid.models.user import UserRoleEnum


# 登入請求的格式
class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# OAuth2 Token 回應的格式 (/auth/token)
class Token(BaseModel):
    access_token: str
    token_type: str


# Token 內的資料
class TokenData(BaseModel):
    user_id: str
    role: str


# 註冊請求 Body
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRoleEnum

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        """角色不分大小寫 (buyer / BUYER)"""
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in {role.value for role in UserRoleEnum}:
                raise ValueError("Role must be either BUYER or SELLER")
        return v


# 註冊/查詢使用者的公開資料 (不含密碼)
class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: EmailStr
    role: UserRoleEnum
    avatar: Optional[str] = None
    created_at: datetime


# 註冊與登入的回應
class AuthResponse(BaseModel):
    token: str
    user: UserOut


# 在案件/出價中顯示的精簡使用者資訊
class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class UserContact(UserSummary):
    """含 Email 的精簡資訊；非案件擁有者檢視時 email 會被隱藏"""
    email: Optional[str] = None
