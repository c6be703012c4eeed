# probid/schemas/file_schema.py
from pydantic import BaseModel, ConfigDict


class FileOut(BaseModel):
    """附件：url 是由儲存檔名推導出的公開下載路徑"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    url: str
    size: int
    mime_type: str
