"""
FastAPI 路由：暴露页面配置与菜单配置的 REST API。
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse

from dashcfg.errors import ConfigError
from dashcfg.page_loader import LoadStatus
from dashcfg.records import form_defaults, resolve_list_query, validate_record
from dashcfg.validator import validate_page_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config")

# 这些全局引用会在 main.py 中注入
_page_loader = None
_menu_loader = None
_page_cache = None


def init_api(page_loader, menu_loader, page_cache=None):
    """注入全局依赖（由 main.py 调用）。"""
    global _page_loader, _menu_loader, _page_cache
    _page_loader = page_loader
    _menu_loader = menu_loader
    _page_cache = page_cache


def _error(status: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message, **extra})


# ── 页面配置 ──────────────────────────────────────────

@router.get("/pages")
async def list_pages():
    """列出所有可用的页面配置（实体名）。"""
    try:
        return await _page_loader.list_pages()
    except ConfigError as e:
        logger.error(f"列出页面配置失败: {e}")
        return _error(500, "Failed to list page configs")


async def _load_page(model_name: str):
    """读取页面配置；失败时返回 (None, 错误响应)。"""
    try:
        result = await _page_loader.load(model_name)
    except ConfigError as e:
        logger.error(f"[{model_name}] 读取页面配置失败: {e}")
        return None, _error(500, "Failed to load config")

    if result.status == LoadStatus.NOT_FOUND:
        return None, _error(404, "Config not found")
    if result.status == LoadStatus.INVALID:
        return None, _error(422, "Config is invalid", errors=result.errors)
    return result.config, None


@router.get("/page/{model_name}")
async def get_page_config(model_name: str):
    """获取指定实体的页面配置。"""
    page, error = await _load_page(model_name)
    if error is not None:
        return error
    return page.to_dict()


@router.get("/page/{model_name}/defaults")
async def get_form_defaults(model_name: str):
    """新建表单的初始值（按字段 name 索引）。"""
    page, error = await _load_page(model_name)
    if error is not None:
        return error
    return form_defaults(page)


@router.post("/page/{model_name}/records/check")
async def check_record(
    model_name: str,
    record: Dict[str, Any] = Body(..., embed=True),
    partial: bool = Body(False, embed=True),
):
    """按页面字段校验一条记录（不保存）；partial=true 时只校验提交的字段。"""
    page, error = await _load_page(model_name)
    if error is not None:
        return error
    errors = validate_record(page, record, partial=partial)
    return {"valid": not errors, "errors": errors}


@router.get("/page/{model_name}/query")
async def get_list_query(
    model_name: str,
    page_no: int = Query(1, alias="page"),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
):
    """列表视图的实际分页与排序参数（请求值不可用时回落到页面 UI 默认值）。"""
    page, error = await _load_page(model_name)
    if error is not None:
        return error
    query = resolve_list_query(page, page_no, page_size, sort_by, sort_order)
    return {
        "page": query.page,
        "pageSize": query.page_size,
        "sortBy": query.sort_by,
        "sortOrder": query.sort_order,
        "offset": query.offset,
    }


@router.post("/validate")
async def validate_config(payload: Any = Body(...)) -> dict:
    """校验任意页面配置（不保存），返回全部错误与提示。"""
    result = validate_page_config(payload)
    return {"valid": result.valid, "errors": result.errors, "warnings": result.warnings}


@router.post("/reload")
async def reload_configs() -> dict:
    """清空页面配置缓存，下一次请求重新读取文件。"""
    cleared = _page_cache.clear() if _page_cache is not None else 0
    logger.info(f"页面配置缓存已清空 ({cleared} 项)")
    return {"message": "Page config cache cleared", "cleared": cleared}


# ── 菜单 ──────────────────────────────────────────────

@router.get("/menus")
async def list_menus():
    """获取排序后的菜单列表。"""
    try:
        menus = await _menu_loader.load_all()
    except ConfigError as e:
        logger.error(f"读取菜单失败: {e}")
        return _error(500, "Failed to load menus")
    return [m.to_api() for m in menus]
