# probid/services/bid_service.py
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from probid.core.errors import AppError, ErrorKind
from probid.core.security import require_role
from probid.models.bid import Bid, BidStatusEnum
from probid.models.project import ProjectStatusEnum
from probid.models.user import User, UserRoleEnum
from probid.repositories.bid_repo import BidRepository
from probid.repositories.project_repo import ProjectRepository
from probid.schemas.bid_schema import BidCreate, BidUpdate
from probid.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class BidService:
    def __init__(self, db: AsyncSession, notification_service: Optional[NotificationService] = None):
        self.db = db
        self.bid_repo = BidRepository(db)
        self.project_repo = ProjectRepository(db)
        self.notification_service = notification_service

    async def _get_own_pending_bid(self, bid_id: str, seller: User, action: str) -> Bid:
        """
        取得賣方自己的出價；出價與案件都必須仍是 PENDING 才能修改或撤回
        """
        require_role(seller, UserRoleEnum.seller, f"Only sellers can {action} bids")

        bid = await self.bid_repo.get_bid_by_id_with_project(bid_id)
        if not bid:
            raise AppError(ErrorKind.NOT_FOUND, "Bid not found")
        if bid.seller_id != seller.id:
            raise AppError(ErrorKind.FORBIDDEN, f"You are not authorized to {action} this bid")
        if bid.status != BidStatusEnum.pending or bid.project.status != ProjectStatusEnum.pending:
            raise AppError(
                ErrorKind.PRECONDITION,
                f"Cannot {action} a bid that has already been accepted or rejected",
            )
        return bid

    async def create_bid(self, bid_data: BidCreate, seller: User) -> Bid:
        """
        賣方對 PENDING 案件出價 (每個案件限一次)，成功後通知買方
        """
        require_role(seller, UserRoleEnum.seller, "Only sellers can create bids")

        project = await self.project_repo.get_project_by_id(bid_data.project_id)
        if not project:
            raise AppError(ErrorKind.NOT_FOUND, "Project not found")
        if project.status != ProjectStatusEnum.pending:
            raise AppError(
                ErrorKind.PRECONDITION,
                "Cannot bid on a project that is already in progress or completed",
            )
        existing = await self.bid_repo.check_existing_bid(project.id, seller.id)
        if existing:
            raise AppError(ErrorKind.CONFLICT, "You have already placed a bid on this project")

        new_bid = Bid(
            amount=bid_data.amount,
            delivery_time=bid_data.delivery_time,
            message=bid_data.message,
            status=BidStatusEnum.pending,
            project_id=project.id,
            seller_id=seller.id,
        )
        created_bid = await self.bid_repo.create_bid(new_bid)
        logger.info(f"Bid created: {created_bid.id} on project {project.id} by seller {seller.id}")

        if self.notification_service and project.buyer:
            self.notification_service.bid_created(
                project.buyer.email, project.title, created_bid.amount, created_bid.delivery_time
            )

        return created_bid

    async def update_bid(self, bid_id: str, data: BidUpdate, seller: User) -> Bid:
        """
        更新出價內容，只更新有傳入的欄位
        """
        bid = await self._get_own_pending_bid(bid_id, seller, action="update")

        for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(bid, key, value)

        return await self.bid_repo.update_bid(bid)

    async def delete_bid(self, bid_id: str, seller: User) -> None:
        """
        撤回出價
        """
        bid = await self._get_own_pending_bid(bid_id, seller, action="delete")
        await self.bid_repo.delete_bid(bid)
        logger.info(f"Bid deleted: {bid_id}")

    async def get_bid_details(self, bid_id: str, user: User) -> Bid:
        """
        出價詳情：只有出價者或案件擁有者可檢視
        """
        bid = await self.bid_repo.get_bid_details(bid_id)
        if not bid:
            raise AppError(ErrorKind.NOT_FOUND, "Bid not found")
        if bid.seller_id != user.id and bid.project.buyer_id != user.id:
            raise AppError(ErrorKind.FORBIDDEN, "You are not authorized to view this bid")
        return bid

    async def get_my_bids(self, seller: User) -> List[Bid]:
        """
        賣方自己的所有出價 (含案件摘要)，新的在前
        """
        require_role(seller, UserRoleEnum.seller, "Only sellers can access their bids")
        return await self.bid_repo.list_bids_by_seller(seller.id)
