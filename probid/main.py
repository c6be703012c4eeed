import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from probid.core.config import Settings, get_settings
from probid.core.database import Database
from probid.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    make_unhandled_error_handler,
    validation_error_handler,
)
from probid.routers import auth_router, bid_router, project_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    建立 FastAPI 應用程式。
    資料庫連線 (Database) 在這裡建立一次，放在 app.state 供每個請求取用。
    """
    settings = settings or get_settings()

    # 設定基礎日誌
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    database = Database(settings)
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.create_all()
        logger.info(f"Backend started (environment={settings.ENVIRONMENT})")
        yield
        await database.dispose()

    app = FastAPI(title="ProBid API", lifespan=lifespan)
    app.state.db = database
    app.state.settings = settings
    # 所有 Depends(get_settings) 都使用這個 app 的設定
    app.dependency_overrides[get_settings] = lambda: settings

    # --- 設定 CORS (跨來源資源共用) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- 錯誤格式：{error: true, message, errors?} ---
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, make_unhandled_error_handler(settings.is_development))

    # --- 根路徑 ---
    @app.get("/")
    def read_root():
        return {"status": "success", "message": "Backend is running!"}

    # --- 載入 API 路由 ---
    app.include_router(auth_router.router)
    app.include_router(project_router.router)
    app.include_router(bid_router.router)

    # 上傳的附件以儲存檔名公開下載
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    return app
