# probid/schemas/project_schema.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from probid.models.project import ProjectStatusEnum
from probid.schemas.file_schema import FileOut
from probid.schemas.user_schema import UserSummary


# 預算區間 (對外以 {min, max} 呈現)
class Budget(BaseModel):
    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.min > self.max:
            raise ValueError("Budget min must not exceed budget max")
        return self


# 買方刊登案件時的 Request Body
class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    budget: Budget
    deadline: datetime


# 買方更新案件時的 Request Body (所有欄位皆可選)
class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    budget: Optional[Budget] = None
    deadline: Optional[datetime] = None


# 選定出價
class SelectBidRequest(BaseModel):
    bid_id: str = Field(..., min_length=1)
    seller_id: str = Field(..., min_length=1)


# 回傳給前端的案件資料
class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    budget: Budget
    deadline: datetime
    status: ProjectStatusEnum
    buyer_id: str
    seller_id: Optional[str] = None
    buyer: Optional[UserSummary] = None
    seller: Optional[UserSummary] = None
    files: List[FileOut] = []
    # 只有列表 API 會填入
    bid_count: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class MessageOut(BaseModel):
    message: str
