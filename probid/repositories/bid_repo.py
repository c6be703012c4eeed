# probid/repositories/bid_repo.py
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload, selectinload

from probid.models.bid import Bid, BidStatusEnum
from probid.models.project import Project


class BidRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_bid_by_id_with_project(self, bid_id: str) -> Optional[Bid]:
        """
        透過 ID 獲取單一出價，並載入關聯的 Project (用於權限與狀態檢查)
        """
        stmt = (
            select(Bid)
            .where(Bid.id == bid_id)
            .options(joinedload(Bid.project))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_bid_details(self, bid_id: str) -> Optional[Bid]:
        """
        獲取出價詳情：出價者與所屬案件
        """
        stmt = (
            select(Bid)
            .where(Bid.id == bid_id)
            .options(joinedload(Bid.project), joinedload(Bid.seller))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_matching_bid(self, bid_id: str, project_id: str, seller_id: str) -> Optional[Bid]:
        """
        選定出價時使用：(出價 ID, 案件, 賣方) 三者必須同時符合
        """
        stmt = (
            select(Bid)
            .where(Bid.id == bid_id, Bid.project_id == project_id, Bid.seller_id == seller_id)
            .options(joinedload(Bid.seller))
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def check_existing_bid(self, project_id: str, seller_id: str) -> Optional[Bid]:
        """
        檢查賣方是否已對此案件出價 (每個案件限一筆)
        """
        stmt = select(Bid).where(Bid.project_id == project_id, Bid.seller_id == seller_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_bids_by_project(self, project_id: str) -> List[Bid]:
        """
        獲取特定案件的所有出價 (含出價者)，新的在前
        """
        stmt = (
            select(Bid)
            .where(Bid.project_id == project_id)
            .options(selectinload(Bid.seller))
            .order_by(Bid.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_bids_by_seller(self, seller_id: str) -> List[Bid]:
        """
        獲取特定賣方的所有出價，並載入案件與案件的買方
        """
        stmt = (
            select(Bid)
            .where(Bid.seller_id == seller_id)
            .options(selectinload(Bid.project).selectinload(Project.buyer))
            .order_by(Bid.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_bid(self, bid: Bid) -> Bid:
        """
        新增出價
        """
        self.db.add(bid)
        await self.db.commit()
        await self.db.refresh(bid)
        return bid

    async def update_bid(self, bid: Bid) -> Bid:
        """
        更新出價內容
        """
        await self.db.commit()
        await self.db.refresh(bid)
        return bid

    async def delete_bid(self, bid: Bid) -> None:
        """
        刪除 (撤回) 出價
        """
        await self.db.delete(bid)
        await self.db.commit()

    async def accept_bid(self, bid_id: str) -> None:
        """選定的出價 -> ACCEPTED (不 commit)"""
        stmt = (
            update(Bid)
            .where(Bid.id == bid_id)
            .values(status=BidStatusEnum.accepted)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)

    async def reject_other_bids(self, project_id: str, accepted_bid_id: str) -> int:
        """同案件的其他出價 -> REJECTED (不 commit)"""
        stmt = (
            update(Bid)
            .where(Bid.project_id == project_id, Bid.id != accepted_bid_id)
            .values(status=BidStatusEnum.rejected)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount
