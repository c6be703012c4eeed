# probid/routers/bid_router.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from probid.core.database import get_db
from probid.core.security import get_current_user
from probid.models.user import User
from probid.schemas.bid_schema import BidCreate, BidDetailOut, BidOut, BidOutWithProject, BidUpdate
from probid.schemas.project_schema import MessageOut
from probid.services.bid_service import BidService
from probid.services.notification_service import NotificationService, get_notification_service

# 此 router 下所有 API 都需要登入
router = APIRouter(
    prefix="/bids",
    tags=["Bids"],
    dependencies=[Depends(get_current_user)],
)


# 注意：/seller 必須在 /{bid_id} 之前註冊
@router.get("/seller", response_model=List[BidOutWithProject])
async def get_my_bids(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    (賣方) 檢視自己提交過的所有出價，附案件摘要
    """
    service = BidService(db)
    return await service.get_my_bids(current_user)


@router.post("", response_model=BidOut, status_code=status.HTTP_201_CREATED)
async def submit_bid(
    bid_data: BidCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    (賣方) 對 PENDING 案件出價，每個案件限一次
    """
    service = BidService(db, notification_service)
    return await service.create_bid(bid_data, current_user)


@router.get("/{bid_id}", response_model=BidDetailOut)
async def get_bid(
    bid_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = BidService(db)
    return await service.get_bid_details(bid_id, current_user)


@router.put("/{bid_id}", response_model=BidOut)
async def update_bid(
    bid_id: str,
    bid_data: BidUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    (賣方) 更新仍在 PENDING 的出價
    """
    service = BidService(db)
    return await service.update_bid(bid_id, bid_data, current_user)


@router.delete("/{bid_id}", response_model=MessageOut)
async def withdraw_bid(
    bid_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    (賣方) 撤回仍在 PENDING 的出價
    """
    service = BidService(db)
    await service.delete_bid(bid_id, current_user)
    return {"message": "Bid deleted successfully"}
