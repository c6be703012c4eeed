# probid/core/config.py
# 應用程式設定 (資料庫連線字串、JWT 秘鑰、上傳目錄、寄件設定等)
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # 資料庫設定 (正式環境使用 mysql+aiomysql://)
    DATABASE_URL: str = "sqlite+aiosqlite:///./probid.db"
    # 設為 True 會在 console 印出 SQL 語句
    DATABASE_ECHO: bool = False

    # JWT 設定
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    # 存取令牌過期時間（分鐘），預設 7 天
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # development 模式下不寄信，只寫 log
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # 檔案上傳
    UPLOAD_DIR: str = "uploads"
    MAX_FILES_PER_UPLOAD: int = 5
    MAX_UPLOAD_SIZE_MB: int = 10

    # 郵件 (Amazon SES)；未設定寄件者時只寫 log
    EMAIL_FROM: Optional[str] = None
    AWS_REGION: str = "us-east-1"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """建立 (並快取) 設定實例"""
    return Settings()
