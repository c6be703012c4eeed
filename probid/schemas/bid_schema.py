# probid/schemas/bid_schema.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from probid.models.bid import BidStatusEnum
from probid.models.project import ProjectStatusEnum
from probid.schemas.project_schema import Budget
from probid.schemas.user_schema import UserContact, UserSummary


# --- 建立 (Create) ---
class BidCreate(BaseModel):
    project_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    # 交付天數
    delivery_time: int = Field(..., gt=0)
    message: str = Field(..., min_length=1)


# --- 更新 (Update)，只有傳入的欄位會變更 ---
class BidUpdate(BaseModel):
    amount: Optional[float] = Field(None, gt=0)
    delivery_time: Optional[int] = Field(None, gt=0)
    message: Optional[str] = Field(None, min_length=1)


# --- 讀取 (Read / Out) ---
class BidOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: float
    delivery_time: int
    message: str
    status: BidStatusEnum
    project_id: str
    seller_id: str
    created_at: datetime
    updated_at: datetime


# 案件出價列表 (買方可看見 email，其他出價者看不到)
class BidOutWithSeller(BidOut):
    seller: UserContact


# 賣方「我的出價」中顯示的案件摘要
class BidProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    status: ProjectStatusEnum
    deadline: datetime
    budget: Budget
    buyer_id: str
    buyer: UserSummary


class BidOutWithProject(BidOut):
    project: BidProjectSummary


class BidProjectBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    status: ProjectStatusEnum
    buyer_id: str


# 單一出價詳情
class BidDetailOut(BidOut):
    seller: UserContact
    project: BidProjectBrief
