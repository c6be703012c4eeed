# models/bid.py
import enum
import uuid

from sqlalchemy import CHAR, Column, DateTime, Enum, Float, ForeignKey, Integer, TEXT
from sqlalchemy.orm import relationship

from probid.core.database import Base
from probid.models.user import utcnow


class BidStatusEnum(str, enum.Enum):
    pending = "PENDING"
    accepted = "ACCEPTED"
    rejected = "REJECTED"


class Bid(Base):
    __tablename__ = "bids"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    amount = Column(Float, nullable=False)
    # 交付天數
    delivery_time = Column(Integer, nullable=False)
    message = Column(TEXT, nullable=False)
    status = Column(
        Enum(BidStatusEnum, values_callable=lambda obj: [e.value for e in obj]),
        default=BidStatusEnum.pending,
        nullable=False,
    )

    # 同一賣方對同一案件只能出價一次 (由 Service 層檢查)
    project_id = Column(CHAR(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    seller_id = Column(CHAR(36), ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    project = relationship("Project", back_populates="bids")
    seller = relationship("User", back_populates="bids")
