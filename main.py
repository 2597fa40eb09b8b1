"""
Dashboard Config 主入口：启动 FastAPI 后端服务。
"""

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dashcfg import api
from dashcfg.menu_loader import MenuLoader
from dashcfg.page_loader import PageConfigCache, PageConfigLoader
from dashcfg.settings import AppSettings, load_settings
from dashcfg.storage import ConfigStore, FileStore

# 日志配置
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} 失败: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[AppSettings] = None, store: Optional[ConfigStore] = None) -> FastAPI:
    """创建并配置 FastAPI 应用。"""
    if settings is None:
        logger.info("正在加载设置...")
        settings = load_settings()
    if store is None:
        store = FileStore()

    app = FastAPI(
        title="Dashboard Config API",
        description="Page and menu configuration for the admin dashboard",
        version="0.1.0",
    )

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, _unhandled_error)

    # ── 初始化核心组件 ────────────────────────────────────────
    page_cache = PageConfigCache() if settings.cache_enabled else None
    page_loader = PageConfigLoader(
        store,
        settings.pages_path(),
        timeout=settings.read_timeout,
        cache=page_cache,
    )
    menu_loader = MenuLoader(
        store,
        settings.menus_path(),
        policy=settings.menu_failure_policy,
        timeout=settings.read_timeout,
    )
    logger.info(f"页面配置目录: {settings.pages_path()}，菜单目录: {settings.menus_path()}")

    # 注入依赖到 API 模块
    api.init_api(page_loader=page_loader, menu_loader=menu_loader, page_cache=page_cache)

    # 注册 API 路由
    app.include_router(api.router)

    app.state.settings = settings
    app.state.page_loader = page_loader
    app.state.menu_loader = menu_loader
    app.state.page_cache = page_cache

    return app


def main():
    """主入口。"""
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8400

    logger.info(f"🚀 启动 Dashboard Config 后端 (port={port})...")

    app = create_app()

    uvicorn.run(
        app,
        host="127.0.0.1",
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
