"""
配置层：解析应用设置（目录、菜单加载策略、超时、缓存）。
Settings come from an optional YAML file plus environment overrides.
"""

import os
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from dashcfg.errors import SettingsError


_SETTINGS_SEARCH_PATHS = [
    "config/settings.yaml",
    "config/settings.yml",
    "settings.yaml",
]

# env var -> settings key
_ENV_OVERRIDES = {
    "DASHCFG_PAGES_DIR": "pages_dir",
    "DASHCFG_MENUS_DIR": "menus_dir",
    "DASHCFG_MENU_POLICY": "menu_failure_policy",
    "DASHCFG_READ_TIMEOUT": "read_timeout",
    "DASHCFG_CACHE": "cache_enabled",
}


class AppSettings(BaseModel):
    root: Path = Path(".")
    pages_dir: Path = Path("config/pages")
    menus_dir: Path = Path("config/data/menus")
    # skip: log and drop a bad menu file; fail: abort the whole menu load
    menu_failure_policy: Literal["skip", "fail"] = "skip"
    read_timeout: float = Field(default=5.0, gt=0)
    cache_enabled: bool = False
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    def pages_path(self) -> Path:
        return self._resolve(self.pages_dir)

    def menus_path(self) -> Path:
        return self._resolve(self.menus_dir)

    def _resolve(self, p: Path) -> Path:
        return p if p.is_absolute() else self.root / p


def find_settings_file(root: Path) -> Optional[Path]:
    for p in _SETTINGS_SEARCH_PATHS:
        path = root / p
        if path.is_file():
            return path
    return None


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as fp:
            content = yaml.safe_load(fp)
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}") from e
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")
    return content


def load_settings(path: Optional[str | Path] = None, env: Optional[dict] = None) -> AppSettings:
    """
    Build AppSettings from (in increasing priority) defaults, the YAML
    settings file and DASHCFG_* environment variables.
    """
    env = os.environ if env is None else env
    root = Path(env.get("DASHCFG_ROOT", "."))

    if path is None:
        path = find_settings_file(root)
    raw = _read_yaml(Path(path)) if path is not None else {}

    for var, key in _ENV_OVERRIDES.items():
        if var in env:
            raw[key] = env[var]
    raw.setdefault("root", str(root))

    try:
        return AppSettings.model_validate(raw)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings: {e}") from e
