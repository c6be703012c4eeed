# probid/services/project_service.py
import logging
import os
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from probid.core.errors import AppError, ErrorKind
from probid.core.security import require_role
from probid.models.bid import Bid
from probid.models.project import Project, ProjectStatusEnum
from probid.models.user import User, UserRoleEnum
from probid.repositories.bid_repo import BidRepository
from probid.repositories.project_repo import SORTABLE_COLUMNS, ProjectRepository
from probid.schemas.bid_schema import BidOutWithSeller
from probid.schemas.project_schema import ProjectCreate, ProjectOut, ProjectUpdate, SelectBidRequest
from probid.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(self, db: AsyncSession, notification_service: Optional[NotificationService] = None):
        self.db = db
        self.project_repo = ProjectRepository(db)
        self.bid_repo = BidRepository(db)
        self.notification_service = notification_service

    # 輔助函式：取得案件並檢查是否為擁有者，以及是否處於允許的狀態
    async def _get_and_check_owner(
        self, project_id: str, user: User, allow_statuses: List[ProjectStatusEnum], action: str
    ) -> Project:
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise AppError(ErrorKind.NOT_FOUND, "Project not found")
        if project.buyer_id != user.id:
            raise AppError(ErrorKind.FORBIDDEN, f"You are not authorized to {action} this project")
        if project.status not in allow_statuses:
            raise AppError(
                ErrorKind.PRECONDITION,
                f"Cannot {action} a project with status {project.status.value}",
            )
        return project

    @staticmethod
    def _parse_filters(
        status: Optional[str], sort: Optional[str]
    ) -> Tuple[Optional[ProjectStatusEnum], str, bool]:
        status_filter = None
        if status:
            try:
                status_filter = ProjectStatusEnum(status.strip().upper())
            except ValueError:
                raise AppError(ErrorKind.VALIDATION, f"Unknown project status: {status}")

        sort_field, descending = "created_at", True
        if sort:
            field, _, direction = sort.strip().rpartition("_")
            if field not in SORTABLE_COLUMNS or direction.lower() not in ("asc", "desc"):
                raise AppError(ErrorKind.VALIDATION, f"Invalid sort option: {sort}")
            sort_field, descending = field, direction.lower() == "desc"
        return status_filter, sort_field, descending

    async def list_projects(
        self,
        user: User,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> List[ProjectOut]:
        """
        依角色列出案件：
        - 買方：自己刊登的所有案件
        - 賣方：所有開放出價的案件 + 指派給自己的案件 (依 id 去除重複)
        每個案件都附上出價數量。
        """
        status_filter, sort_field, descending = self._parse_filters(status, sort)

        if user.role == UserRoleEnum.buyer:
            projects = await self.project_repo.list_projects_by_buyer(
                user.id, status_filter, search, sort_field, descending
            )
        else:
            projects = []
            if status_filter in (None, ProjectStatusEnum.pending):
                projects.extend(
                    await self.project_repo.list_open_projects(search, sort_field, descending)
                )
            projects.extend(
                await self.project_repo.list_projects_by_seller(
                    user.id, status_filter, search, sort_field, descending
                )
            )
            unique = {}
            for project in projects:
                unique.setdefault(project.id, project)
            projects = list(unique.values())

        bid_counts = await self.project_repo.count_bids_by_project([p.id for p in projects])
        return [
            ProjectOut.model_validate(project).model_copy(
                update={"bid_count": bid_counts.get(project.id, 0)}
            )
            for project in projects
        ]

    async def get_project_details(self, project_id: str) -> Project:
        """
        獲取單一案件詳情 (任何已登入使用者)
        """
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise AppError(ErrorKind.NOT_FOUND, "Project not found")
        return project

    async def create_project(self, project_data: ProjectCreate, user: User) -> Project:
        """
        建立案件：僅限買方，狀態固定為 PENDING
        """
        require_role(user, UserRoleEnum.buyer, "Only buyers can create projects")

        new_project = Project(
            title=project_data.title,
            description=project_data.description,
            budget_min=project_data.budget.min,
            budget_max=project_data.budget.max,
            deadline=project_data.deadline,
            status=ProjectStatusEnum.pending,
            buyer_id=user.id,
            seller_id=None,
        )
        created = await self.project_repo.create_project(new_project)
        logger.info(f"Project created: {created.id} by buyer {user.id}")
        return created

    async def update_project(self, project_id: str, data: ProjectUpdate, user: User) -> Project:
        """
        更新案件內容 (僅限擁有者，且狀態為 PENDING)，只更新有傳入的欄位
        """
        project = await self._get_and_check_owner(
            project_id, user, allow_statuses=[ProjectStatusEnum.pending], action="update"
        )

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        budget = update_data.pop("budget", None)
        if budget is not None:
            project.budget_min = budget["min"]
            project.budget_max = budget["max"]
        for key, value in update_data.items():
            setattr(project, key, value)

        return await self.project_repo.update_project(project)

    async def delete_project(self, project_id: str, user: User) -> None:
        """
        刪除案件 (僅限擁有者，且狀態為 PENDING)，一併刪除出價與附件
        """
        project = await self._get_and_check_owner(
            project_id, user, allow_statuses=[ProjectStatusEnum.pending], action="delete"
        )
        stored_paths = [f.path for f in project.files]

        await self.project_repo.delete_project(project.id)
        logger.info(f"Project deleted: {project.id}")

        # 資料列已刪除，再移除實體檔案
        for path in stored_paths:
            try:
                if os.path.exists(path):
                    os.remove(path)
            except OSError as e:
                logger.warning(f"Could not remove stored file {path}: {e}")

    async def select_bid(self, project_id: str, data: SelectBidRequest, user: User) -> Project:
        """
        買方選定出價：
        案件 -> IN_PROGRESS (指派賣方)、選定出價 -> ACCEPTED、其他出價 -> REJECTED，
        三個寫入在同一個交易中完成；commit 後才通知得標賣方。
        """
        project = await self._get_and_check_owner(
            project_id, user, allow_statuses=[ProjectStatusEnum.pending], action="select a bid for"
        )

        bid = await self.bid_repo.get_matching_bid(data.bid_id, project.id, data.seller_id)
        if not bid:
            raise AppError(ErrorKind.NOT_FOUND, "Bid not found or does not match the project")
        seller_email = bid.seller.email if bid.seller else None

        try:
            # 條件式更新：同時有兩個選定請求時，只有一個會成功
            if not await self.project_repo.mark_in_progress(project.id, data.seller_id):
                raise AppError(
                    ErrorKind.PRECONDITION,
                    "Cannot select a bid for a project that is already in progress or completed",
                )
            await self.bid_repo.accept_bid(bid.id)
            rejected = await self.bid_repo.reject_other_bids(project.id, bid.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Project {project.id} -> IN_PROGRESS: bid {bid.id} accepted, {rejected} other bid(s) rejected"
        )

        if self.notification_service:
            self.notification_service.bid_accepted(seller_email, project.title)

        return await self.project_repo.get_project_by_id(project.id)

    async def complete_project(self, project_id: str, user: User) -> Project:
        """
        買方將 IN_PROGRESS 的案件標記為 COMPLETED (終止狀態)
        """
        project = await self._get_and_check_owner(
            project_id, user, allow_statuses=[ProjectStatusEnum.in_progress], action="complete"
        )
        seller_email = project.seller.email if project.seller else None

        try:
            if not await self.project_repo.mark_completed(project.id):
                raise AppError(
                    ErrorKind.PRECONDITION,
                    "Only projects that are in progress can be marked as completed",
                )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Project {project.id} -> COMPLETED")

        if self.notification_service:
            self.notification_service.project_completed(seller_email, project.title)

        return await self.project_repo.get_project_by_id(project.id)

    async def get_project_bids(self, project_id: str, user: User) -> List[BidOutWithSeller]:
        """
        案件的出價列表：
        - 擁有者 (買方) 可看到所有出價與出價者 email
        - 曾對此案件出價的賣方可看到出價，但 email 隱藏
        """
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise AppError(ErrorKind.NOT_FOUND, "Project not found")

        is_owner = project.buyer_id == user.id
        if not is_owner:
            has_bid = None
            if user.role == UserRoleEnum.seller:
                has_bid = await self.bid_repo.check_existing_bid(project.id, user.id)
            if not has_bid:
                raise AppError(ErrorKind.FORBIDDEN, "You are not authorized to view these bids")

        bids: List[Bid] = await self.bid_repo.list_bids_by_project(project.id)
        results = []
        for bid in bids:
            out = BidOutWithSeller.model_validate(bid)
            if not is_owner:
                out.seller.email = None
            results.append(out)
        return results
