# models/user.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import CHAR, Column, DateTime, Enum, String
from sqlalchemy.orm import relationship

from probid.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# 對應資料庫中的 UserRole ENUM 型別
class UserRoleEnum(str, enum.Enum):
    buyer = "BUYER"
    seller = "SELLER"


class User(Base):
    __tablename__ = "users"

    # 基本欄位
    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    # 建立後不可變更
    role = Column(Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    avatar = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # 關聯設定
    projects_owned = relationship(
        "Project",
        back_populates="buyer",
        foreign_keys="[Project.buyer_id]",
    )

    projects_assigned = relationship(
        "Project",
        back_populates="seller",
        foreign_keys="[Project.seller_id]",
    )

    bids = relationship(
        "Bid",
        back_populates="seller",
    )
