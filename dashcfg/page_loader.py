"""
Page config loader: entity name -> PageConfig | not found | invalid.
"""

import logging
from enum import Enum
from typing import Dict, Hashable, List, Optional, Tuple

from pydantic import BaseModel, Field

from dashcfg.errors import ConfigNotFound, ConfigParseError
from dashcfg.page_schema import IDENTIFIER_RE, PageConfig
from dashcfg.storage import ConfigStore, decode_json, run_with_timeout
from dashcfg.validator import ROOT_PATH, validate_page_config

logger = logging.getLogger(__name__)

CONFIG_SUFFIX = ".json"


class LoadStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


class PageLoadResult(BaseModel):
    entity: str
    status: LoadStatus
    config: Optional[PageConfig] = None
    errors: Dict[str, str] = Field(default_factory=dict)
    warnings: Dict[str, str] = Field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.status == LoadStatus.FOUND


def sanitize_entity_name(name: str) -> Optional[str]:
    """Entity names are opaque identifiers; anything beyond [A-Za-z0-9_-] is refused."""
    if not isinstance(name, str) or not IDENTIFIER_RE.fullmatch(name):
        return None
    return name


class PageConfigCache:
    """
    Explicit cache of load results keyed by entity name.
    An entry is only served while the store's version token for the file
    is unchanged; invalidate()/clear() drop entries on demand.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[Hashable, PageLoadResult]] = {}

    def get(self, entity: str, version: Optional[Hashable]) -> Optional[PageLoadResult]:
        entry = self._entries.get(entity)
        if entry is None or version is None or entry[0] != version:
            return None
        return entry[1]

    def put(self, entity: str, version: Optional[Hashable], result: PageLoadResult):
        if version is not None:
            self._entries[entity] = (version, result)

    def invalidate(self, entity: str) -> bool:
        return self._entries.pop(entity, None) is not None

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)


class PageConfigLoader:
    """Resolves entity names to validated page configs under one directory."""

    def __init__(self, store: ConfigStore, directory, timeout: float = 5.0, cache: Optional[PageConfigCache] = None):
        self.store = store
        self.directory = directory
        self.timeout = timeout
        self.cache = cache

    def path_for(self, entity: str) -> str:
        return self.store.join(self.directory, f"{entity}{CONFIG_SUFFIX}")

    async def load(self, entity_name: str) -> PageLoadResult:
        """
        Never raises for absent or invalid configs; ConfigIOError propagates.
        """
        entity = sanitize_entity_name(entity_name)
        if entity is None:
            logger.warning(f"Rejected entity name {entity_name!r}")
            return PageLoadResult(entity=str(entity_name), status=LoadStatus.NOT_FOUND)

        path = self.path_for(entity)

        version = None
        if self.cache is not None:
            version = await run_with_timeout(self.store.version, path, self.timeout)
            cached = self.cache.get(entity, version)
            if cached is not None:
                logger.debug(f"[{entity}] page config served from cache")
                return cached

        try:
            content = await run_with_timeout(self.store.read, path, self.timeout)
        except ConfigNotFound:
            logger.debug(f"[{entity}] no page config at {path}")
            return PageLoadResult(entity=entity, status=LoadStatus.NOT_FOUND)

        result = self._build(entity, path, content)
        if self.cache is not None:
            self.cache.put(entity, version, result)
        return result

    def _build(self, entity: str, path: str, content: bytes) -> PageLoadResult:
        try:
            raw = decode_json(content)
        except ValueError as e:
            err = ConfigParseError(path, str(e))
            logger.warning(str(err))
            return PageLoadResult(entity=entity, status=LoadStatus.INVALID, errors={ROOT_PATH: str(err)})

        validation = validate_page_config(raw)
        if not validation.valid:
            logger.warning(f"[{entity}] invalid page config ({len(validation.errors)} errors)")
            return PageLoadResult(entity=entity, status=LoadStatus.INVALID, errors=validation.errors)

        warnings = dict(validation.warnings)
        if validation.config.model_name != entity:
            warnings["modelName"] = f"'{validation.config.model_name}' differs from file name '{entity}'"
        return PageLoadResult(
            entity=entity,
            status=LoadStatus.FOUND,
            config=validation.config,
            warnings=warnings,
        )

    async def list_pages(self) -> List[str]:
        """Entity names with a config file, sorted."""
        try:
            names = await run_with_timeout(self.store.list, self.directory, self.timeout)
        except ConfigNotFound:
            return []
        return sorted(
            n[: -len(CONFIG_SUFFIX)]
            for n in names
            if n.endswith(CONFIG_SUFFIX) and sanitize_entity_name(n[: -len(CONFIG_SUFFIX)])
        )
