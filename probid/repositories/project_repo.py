# probid/repositories/project_repo.py
import logging
from typing import Dict, List, Optional

from sqlalchemy import delete, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from probid.models.bid import Bid
from probid.models.file import ProjectFile
from probid.models.project import Project, ProjectStatusEnum

logger = logging.getLogger(__name__)

# 可排序的欄位 (sort=<field>_<asc|desc>)
SORTABLE_COLUMNS = {
    "created_at": Project.created_at,
    "updated_at": Project.updated_at,
    "deadline": Project.deadline,
    "budget_min": Project.budget_min,
    "budget_max": Project.budget_max,
    "title": Project.title,
}


class ProjectRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _with_details(stmt):
        # ProjectOut 需要 buyer / seller / files，async 下不可 lazy load
        return stmt.options(
            selectinload(Project.buyer),
            selectinload(Project.seller),
            selectinload(Project.files),
        )

    @staticmethod
    def _apply_filters(stmt, status: Optional[ProjectStatusEnum], search: Optional[str]):
        if status is not None:
            stmt = stmt.where(Project.status == status)
        if search:
            # % 與 _ 視為一般字元
            term = search.lower()
            stmt = stmt.where(
                or_(
                    func.lower(Project.title).contains(term, autoescape=True),
                    func.lower(Project.description).contains(term, autoescape=True),
                )
            )
        return stmt

    @staticmethod
    def _order_by(stmt, sort_field: str, descending: bool):
        column = SORTABLE_COLUMNS[sort_field]
        return stmt.order_by(column.desc() if descending else column.asc())

    async def create_project(self, project: Project) -> Project:
        """
        建立新案件
        """
        self.db.add(project)
        await self.db.commit()
        return await self.get_project_by_id(project.id)

    async def get_project_by_id(self, project_id: str) -> Project | None:
        """
        透過 ID 獲取單一案件 (包含買方、賣方與附件)
        """
        stmt = self._with_details(select(Project).where(Project.id == project_id))
        # 批次 UPDATE 之後，確保 Session 中的物件被重新填入
        stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_projects_by_buyer(
        self,
        buyer_id: str,
        status: Optional[ProjectStatusEnum] = None,
        search: Optional[str] = None,
        sort_field: str = "created_at",
        descending: bool = True,
    ) -> List[Project]:
        """
        查詢特定買方刊登的所有案件 (任何狀態)
        """
        stmt = select(Project).where(Project.buyer_id == buyer_id)
        stmt = self._apply_filters(stmt, status, search)
        stmt = self._order_by(self._with_details(stmt), sort_field, descending)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_open_projects(
        self,
        search: Optional[str] = None,
        sort_field: str = "created_at",
        descending: bool = True,
    ) -> List[Project]:
        """
        獲取所有「PENDING」(開放出價) 的案件
        """
        stmt = select(Project).where(Project.status == ProjectStatusEnum.pending)
        stmt = self._apply_filters(stmt, None, search)
        stmt = self._order_by(self._with_details(stmt), sort_field, descending)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_projects_by_seller(
        self,
        seller_id: str,
        status: Optional[ProjectStatusEnum] = None,
        search: Optional[str] = None,
        sort_field: str = "created_at",
        descending: bool = True,
    ) -> List[Project]:
        """
        查詢指派給特定賣方的案件
        """
        stmt = select(Project).where(Project.seller_id == seller_id)
        stmt = self._apply_filters(stmt, status, search)
        stmt = self._order_by(self._with_details(stmt), sort_field, descending)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_bids_by_project(self, project_ids: List[str]) -> Dict[str, int]:
        """
        一次查詢多個案件的出價數量，避免 N+1
        """
        if not project_ids:
            return {}
        stmt = (
            select(Bid.project_id, func.count(Bid.id))
            .where(Bid.project_id.in_(project_ids))
            .group_by(Bid.project_id)
        )
        result = await self.db.execute(stmt)
        return {project_id: count for project_id, count in result.all()}

    async def update_project(self, project: Project) -> Project:
        """
        儲存對現有 Project 物件的變更
        """
        await self.db.commit()
        # commit 後重新獲取 Eager Loaded 的版本
        return await self.get_project_by_id(project.id)

    async def delete_project(self, project_id: str) -> None:
        """
        刪除案件，連同其出價與附件 (同一個交易)
        """
        await self.db.execute(delete(Bid).where(Bid.project_id == project_id))
        await self.db.execute(delete(ProjectFile).where(ProjectFile.project_id == project_id))
        await self.db.execute(delete(Project).where(Project.id == project_id))
        await self.db.commit()

    async def mark_in_progress(self, project_id: str, seller_id: str) -> bool:
        """
        PENDING -> IN_PROGRESS 並指派賣方 (不 commit)。
        條件式更新：若案件已不是 PENDING 則回傳 False。
        """
        stmt = (
            update(Project)
            .where(Project.id == project_id, Project.status == ProjectStatusEnum.pending)
            .values(status=ProjectStatusEnum.in_progress, seller_id=seller_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def mark_completed(self, project_id: str) -> bool:
        """
        IN_PROGRESS -> COMPLETED (不 commit)
        """
        stmt = (
            update(Project)
            .where(Project.id == project_id, Project.status == ProjectStatusEnum.in_progress)
            .values(status=ProjectStatusEnum.completed)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1
