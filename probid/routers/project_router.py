# probid/routers/project_router.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from probid.core.config import Settings, get_settings
from probid.core.database import get_db
from probid.core.security import get_current_user
from probid.models.user import User
from probid.schemas.bid_schema import BidOutWithSeller
from probid.schemas.project_schema import (
    MessageOut,
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
    SelectBidRequest,
)
from probid.services.file_service import FileService
from probid.services.notification_service import NotificationService, get_notification_service
from probid.services.project_service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
    # 該模組下的所有 API 都需要登入
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=List[ProjectOut])
async def list_projects(
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    依角色列出案件。

    - 買方：自己刊登的案件
    - 賣方：開放出價中的案件，以及指派給自己的案件
    - `sort` 格式為 `<欄位>_<asc|desc>`，例如 `deadline_asc`
    """
    logger.info(f"List projects for {current_user.id}: status={status}, search={search}, sort={sort}")
    service = ProjectService(db)
    return await service.list_projects(current_user, status=status, search=search, sort=sort)


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_new_project(
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    刊登新案件 (僅限買方)
    """
    service = ProjectService(db)
    return await service.create_project(project_data=project_data, user=current_user)


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project_by_id(
    project_id: str,
    db: AsyncSession = Depends(get_db),
):
    """
    獲取單一案件的詳細資料 (含附件)
    """
    service = ProjectService(db)
    return await service.get_project_details(project_id)


@router.put("/{project_id}", response_model=ProjectOut)
async def update_project_details(
    project_id: str,
    project_data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    (買方) 更新 PENDING 案件的內容
    """
    service = ProjectService(db)
    return await service.update_project(project_id=project_id, data=project_data, user=current_user)


@router.delete("/{project_id}", response_model=MessageOut)
async def delete_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    (買方) 刪除 PENDING 案件，連同出價與附件
    """
    service = ProjectService(db)
    await service.delete_project(project_id, current_user)
    return {"message": "Project deleted successfully"}


@router.get("/{project_id}/bids", response_model=List[BidOutWithSeller])
async def get_project_bids(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    案件的所有出價 (擁有者，或曾出價的賣方)
    """
    service = ProjectService(db)
    return await service.get_project_bids(project_id, current_user)


@router.post("/{project_id}/select-bid", response_model=ProjectOut)
async def select_bid(
    project_id: str,
    selection: SelectBidRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    (買方) 選定出價：案件進入 IN_PROGRESS，其他出價全部被拒絕
    """
    service = ProjectService(db, notification_service)
    return await service.select_bid(project_id, selection, current_user)


@router.post("/{project_id}/complete", response_model=ProjectOut)
async def complete_project(
    project_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    (買方) 將進行中的案件標記為完成
    """
    service = ProjectService(db, notification_service)
    return await service.complete_project(project_id, current_user)


@router.post("/{project_id}/files", response_model=ProjectOut)
async def upload_project_files(
    project_id: str,
    files: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user),
):
    """
    上傳案件附件 (multipart/form-data，欄位名稱 `files`)。
    僅限案件買方或得標賣方。
    """
    service = FileService(db, settings)
    return await service.upload_files(project_id, files, current_user)
