# models/file.py
import uuid

from sqlalchemy import CHAR, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from probid.core.database import Base
from probid.models.user import utcnow


class ProjectFile(Base):
    __tablename__ = "files"

    id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # 使用者上傳時的原始檔名
    name = Column(String(255), nullable=False)
    # 實際儲存路徑 (檔名為系統產生)
    path = Column(String(500), nullable=False)
    size = Column(Integer, nullable=False)
    mime_type = Column(String(255), nullable=False)
    project_id = Column(CHAR(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    project = relationship("Project", back_populates="files")

    @property
    def stored_name(self) -> str:
        return self.path.replace("\\", "/").split("/")[-1]

    @property
    def url(self) -> str:
        """對外公開的下載路徑"""
        return f"/uploads/{self.stored_name}"
