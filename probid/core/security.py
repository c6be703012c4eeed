# probid/core/security.py
# 負責密碼雜湊與 JWT 權杖的產生與驗證
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from probid.core.config import Settings, get_settings
from probid.core.database import get_db
from probid.core.errors import AppError, ErrorKind
from probid.models.user import User, UserRoleEnum
from probid.repositories.user_repo import UserRepository
from probid.schemas.user_schema import TokenData

# 1. 密碼雜湊設定 (Bcrypt)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# 2. Token 來自 Authorization: Bearer <token>
# auto_error=False：缺少 token 時由 get_current_user 統一回傳錯誤格式
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """驗證明文密碼是否與雜湊值相符"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """產生密碼的雜湊值"""
    return pwd_context.hash(password)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """
    根據傳入的 data (user_id, role) 產生 JWT access token
    """
    to_encode = data.copy()  # 避免修改原始資料
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_access_token(token: str, settings: Settings) -> TokenData:
    """
    驗證 JWT，回傳 TokenData；簽章錯誤、過期或內容不完整時拋出 UNAUTHORIZED
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise AppError(ErrorKind.UNAUTHORIZED, "Token expired")
    except JWTError:
        raise AppError(ErrorKind.UNAUTHORIZED, "Invalid token")

    user_id = payload.get("user_id")
    role = payload.get("role")
    if user_id is None or role not in {r.value for r in UserRoleEnum}:
        raise AppError(ErrorKind.UNAUTHORIZED, "Invalid token")

    return TokenData(user_id=user_id, role=role)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    FastAPI 依賴項：驗證 Token 並回傳 User Model
    """
    if not token:
        raise AppError(ErrorKind.UNAUTHORIZED, "Authorization token required")

    token_data = verify_access_token(token, settings)

    user_repo = UserRepository(db)
    user = await user_repo.get_user_by_id(token_data.user_id, role=UserRoleEnum(token_data.role))

    # 使用者已被刪除，或 token 中的角色與帳號不符
    if user is None:
        raise AppError(ErrorKind.UNAUTHORIZED, "User not found")

    return user


def require_role(user: User, role: UserRoleEnum, message: str) -> None:
    """角色檢查：不符時拋出 FORBIDDEN"""
    if user.role != role:
        raise AppError(ErrorKind.FORBIDDEN, message)
