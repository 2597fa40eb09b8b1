"""
离线校验：检查页面配置目录下的所有 JSON 文件，打印全部错误。
用法: python scripts/check_configs.py [pages_dir]
"""

import asyncio
import os
import sys
from typing import Dict

# 项目根目录
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(PROJECT_ROOT)

from dashcfg.page_loader import LoadStatus, PageConfigLoader  # noqa: E402
from dashcfg.settings import load_settings  # noqa: E402
from dashcfg.storage import FileStore  # noqa: E402


async def check_directory(directory) -> Dict[str, Dict[str, str]]:
    """Validate every page config in ``directory``; returns errors per invalid entity."""
    loader = PageConfigLoader(FileStore(), directory)
    problems = {}
    for entity in await loader.list_pages():
        result = await loader.load(entity)
        if result.status == LoadStatus.INVALID:
            problems[entity] = result.errors
    return problems


def main() -> int:
    directory = sys.argv[1] if len(sys.argv) > 1 else load_settings().pages_path()
    problems = asyncio.run(check_directory(directory))
    if not problems:
        print(f"✅ {directory}: all page configs are valid")
        return 0
    for entity, errors in problems.items():
        print(f"❌ {entity}")
        for path, message in errors.items():
            print(f"    {path or '<root>'}: {message}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
