# probid/repositories/user_repo.py
# 使用者帳號的查詢與建立 (email 唯一)
from typing import Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from probid.models.user import User, UserRoleEnum


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def email_exists(self, email: str) -> bool:
        stmt = select(func.count(User.id)).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalar_one() > 0

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """
        登入用：透過 email 取得帳號 (含密碼雜湊)
        """
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_user_by_id(self, user_id: str, role: Optional[UserRoleEnum] = None) -> Optional[User]:
        """
        Token 驗證用：依 id 取得帳號；指定 role 時角色不符視為不存在
        """
        stmt = select(User).where(User.id == user_id)
        if role is not None:
            stmt = stmt.where(User.role == role)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_user(self, user: User) -> User:
        """
        新增帳號；email 重複時由唯一索引拋出 IntegrityError
        """
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user
