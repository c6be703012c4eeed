# models/project.py
import enum
import uuid

from sqlalchemy import CHAR, Column, DateTime, Enum, Float, ForeignKey, String, TEXT
from sqlalchemy.orm import relationship

from probid.core.database import Base
from probid.models.user import utcnow


class ProjectStatusEnum(str, enum.Enum):
    pending = "PENDING"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"


class Project(Base):
    __tablename__ = "projects"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(TEXT, nullable=False)
    budget_min = Column(Float, nullable=False)
    budget_max = Column(Float, nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        Enum(ProjectStatusEnum, values_callable=lambda obj: [e.value for e in obj]),
        default=ProjectStatusEnum.pending,
        nullable=False,
        index=True,
    )
    # 刊登案件的買方 (必填)
    buyer_id = Column(CHAR(36), ForeignKey("users.id"), nullable=False, index=True)
    # 得標的賣方，只有在選定出價後才會有值
    seller_id = Column(CHAR(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    buyer = relationship("User", back_populates="projects_owned", foreign_keys=[buyer_id])
    seller = relationship("User", back_populates="projects_assigned", foreign_keys=[seller_id])

    # 刪除案件時，一併刪除關聯出價與檔案
    bids = relationship(
        "Bid",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    files = relationship(
        "ProjectFile",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProjectFile.created_at",
    )

    @property
    def budget(self) -> dict:
        """對外以 {min, max} 呈現預算區間"""
        return {"min": self.budget_min, "max": self.budget_max}

    @property
    def is_pending(self) -> bool:
        return self.status == ProjectStatusEnum.pending
