import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from probid.core.config import Settings, get_settings
from probid.core.database import get_db
from probid.core.security import get_current_user
from probid.models.user import User
from probid.services.auth_service import AuthService
from probid.schemas.user_schema import AuthResponse, Token, UserCreate, UserLogin, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",  # 路由前綴
    tags=["Auth"],    # API 文件分類標籤
)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_new_user(
    user_data: UserCreate,  # Request Body 會被 Pydantic 驗證
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    註冊新使用者 (買方 BUYER / 賣方 SELLER)，回傳 token 與公開的使用者資料。
    """
    auth_service = AuthService(db, settings)
    new_user = await auth_service.register_user(user_data)
    return {"token": auth_service.create_login_token(new_user), "user": new_user}


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    使用 email / 密碼登入
    """
    auth_service = AuthService(db, settings)
    user = await auth_service.authenticate_user(email=credentials.email, password=credentials.password)
    return {"token": auth_service.create_login_token(user), "user": user}


@router.post("/token", response_model=Token)
async def login_for_access_token(
    # OAuth2PasswordRequestForm 只接受 form-data：username=...&password=...
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    提供帳號 (username 欄位傳 email) 和密碼以取得 Access Token (供 API 文件頁面使用)
    """
    auth_service = AuthService(db, settings)
    user = await auth_service.authenticate_user(email=form_data.username, password=form_data.password)
    return {"access_token": auth_service.create_login_token(user), "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """
    獲取當前登入使用者的基本資料 (不含密碼)
    """
    return current_user
