# probid/repositories/file_repo.py
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from probid.models.file import ProjectFile


class FileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_files(self, files: List[ProjectFile]) -> List[ProjectFile]:
        """
        一次寫入多筆附件紀錄
        """
        self.db.add_all(files)
        await self.db.commit()
        return files
