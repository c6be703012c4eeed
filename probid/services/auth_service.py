import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from probid.core.config import Settings
from probid.core.errors import AppError, ErrorKind
from probid.core.security import create_access_token, get_password_hash, verify_password
from probid.models.user import User
from probid.repositories.user_repo import UserRepository
from probid.schemas.user_schema import UserCreate

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.user_repo = UserRepository(db)

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        驗證使用者帳號密碼。
        帳號不存在或密碼錯誤都回傳同一個訊息，不洩漏帳號是否存在。
        """
        user = await self.user_repo.get_user_by_email(email)

        if not user or not verify_password(plain_password=password, hashed_password=user.password_hash):
            raise AppError(ErrorKind.UNAUTHORIZED, "Invalid credentials")

        logger.info(f"User logged in: {user.id}")
        return user

    async def register_user(self, user_create: UserCreate) -> User:
        """
        處理使用者註冊
        """
        # 1. 檢查 Email 是否已被註冊
        if await self.user_repo.email_exists(user_create.email):
            raise AppError(ErrorKind.CONFLICT, "User with this email already exists")

        # 2. 雜湊密碼 (不儲存明文)
        new_user = User(
            name=user_create.name,
            email=user_create.email,
            password_hash=get_password_hash(user_create.password),
            role=user_create.role,
        )

        # 3. 儲存；同時註冊時由唯一索引擋下
        try:
            created_user = await self.user_repo.create_user(new_user)
        except IntegrityError:
            await self.db.rollback()
            raise AppError(ErrorKind.CONFLICT, "User with this email already exists")

        logger.info(f"User registered: {created_user.id} ({created_user.role.value})")
        return created_user

    def create_login_token(self, user: User) -> str:
        """
        為指定使用者建立 access token
        """
        return create_access_token(
            data={
                "sub": user.email,
                "user_id": str(user.id),
                "role": user.role.value,
            },
            settings=self.settings,
        )
