# probid/services/file_service.py
import logging
import os
import uuid
from pathlib import Path
from typing import List, Optional

import aiofiles
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from probid.core.config import Settings
from probid.core.errors import AppError, ErrorKind
from probid.models.file import ProjectFile
from probid.models.project import Project
from probid.models.user import User
from probid.repositories.file_repo import FileRepository
from probid.repositories.project_repo import ProjectRepository

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 1024 * 1024


class FileService:
    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings
        self.upload_dir = Path(settings.UPLOAD_DIR)
        self.project_repo = ProjectRepository(db)
        self.file_repo = FileRepository(db)

    async def _save_upload_file(self, file: UploadFile) -> ProjectFile:
        """
        寫入磁碟 (檔名由系統產生，保留副檔名)，回傳尚未存入資料庫的 ProjectFile
        """
        max_bytes = self.settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        original_name = os.path.basename(file.filename or "file")
        extension = Path(original_name).suffix.lower()
        stored_path = self.upload_dir / f"{uuid.uuid4()}{extension}"

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        size = 0
        try:
            # 分段讀寫，超過上限立即停止
            async with aiofiles.open(stored_path, "wb") as f:
                while True:
                    chunk = await file.read(UPLOAD_CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        raise AppError(
                            ErrorKind.VALIDATION,
                            f"File {file.filename} exceeds the {self.settings.MAX_UPLOAD_SIZE_MB}MB limit",
                        )
                    await f.write(chunk)
        except Exception:
            if stored_path.exists():
                stored_path.unlink()
            raise

        return ProjectFile(
            name=original_name,
            path=stored_path.as_posix(),
            size=size,
            mime_type=file.content_type or "application/octet-stream",
        )

    async def upload_files(self, project_id: str, files: Optional[List[UploadFile]], user: User) -> Project:
        """
        上傳附件：只有案件買方或得標賣方可以上傳
        """
        project = await self.project_repo.get_project_by_id(project_id)
        if not project:
            raise AppError(ErrorKind.NOT_FOUND, "Project not found")

        is_authorized = user.id == project.buyer_id or (
            project.seller_id is not None and user.id == project.seller_id
        )
        if not is_authorized:
            raise AppError(ErrorKind.FORBIDDEN, "You are not authorized to upload files to this project")

        files = [f for f in (files or []) if f is not None and f.filename]
        if not files:
            raise AppError(ErrorKind.VALIDATION, "No files uploaded")
        if len(files) > self.settings.MAX_FILES_PER_UPLOAD:
            raise AppError(
                ErrorKind.VALIDATION,
                f"At most {self.settings.MAX_FILES_PER_UPLOAD} files can be uploaded at once",
            )

        records: List[ProjectFile] = []
        try:
            for upload in files:
                record = await self._save_upload_file(upload)
                record.project_id = project.id
                records.append(record)
            await self.file_repo.add_files(records)
        except Exception:
            # 寫入失敗時移除已存下的實體檔案
            await self.db.rollback()
            for record in records:
                if os.path.exists(record.path):
                    os.remove(record.path)
            raise

        logger.info(f"{len(records)} file(s) uploaded to project {project.id} by user {user.id}")
        return await self.project_repo.get_project_by_id(project.id)
