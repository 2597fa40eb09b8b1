"""
Menu loader: one JSON file per top-level menu entry, normalized and ordered.
"""

import asyncio
import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr
from pydantic.alias_generators import to_camel

from dashcfg.errors import ConfigNotFound, ConfigParseError, MenuLoadError
from dashcfg.field_types import Number
from dashcfg.storage import ConfigStore, decode_json, run_with_timeout

logger = logging.getLogger(__name__)

DEFAULT_ORDER = 999
MENU_SUFFIX = ".json"


class MenuEntry(BaseModel):
    """A navigation item; unknown keys in the source file are kept as-is."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow", frozen=True)

    id: StrictStr
    title: StrictStr
    url: StrictStr
    icon: Optional[StrictStr] = None
    order: Number = DEFAULT_ORDER
    is_active: Optional[StrictBool] = None
    items: Optional[List["MenuEntry"]] = None

    def sort_key(self):
        return (self.order, self.id)

    def to_api(self) -> Dict[str, Any]:
        """Shape served by GET /config/menus (title->name, url->path)."""
        data = {
            "id": self.id,
            "name": self.title,
            "path": self.url,
            "icon": self.icon,
            "order": self.order,
            "isActive": self.is_active,
        }
        if self.items:
            data["items"] = [child.to_api() for child in self.items]
        return data


def normalize_menu(raw: Any, default_id: str) -> Dict[str, Any]:
    """
    Apply defaults to a raw menu dict: id from the file name, order 999
    when absent or falsy, children normalized the same way.
    """
    if not isinstance(raw, dict):
        raise ValueError("menu file must contain a JSON object")
    data = dict(raw)
    data["id"] = data.get("id") or default_id
    data["order"] = data.get("order") or DEFAULT_ORDER
    children = data.get("items")
    if isinstance(children, list):
        data["items"] = [
            normalize_menu(child, f"{data['id']}-{i}") for i, child in enumerate(children)
        ]
    return data


def order_entries(entries: List[MenuEntry]) -> List[MenuEntry]:
    """Sort by (order, id) at every level of nesting."""
    ordered = []
    for entry in sorted(entries, key=MenuEntry.sort_key):
        if entry.items:
            entry = entry.model_copy(update={"items": order_entries(entry.items)})
        ordered.append(entry)
    return ordered


class MenuLoader:
    """
    Loads every ``*.json`` file in a directory as a MenuEntry.

    policy="skip" logs and drops files that fail to parse or validate;
    policy="fail" raises MenuLoadError for the first one. Read failures
    (ConfigIOError) always propagate.
    """

    def __init__(self, store: ConfigStore, directory, policy: Literal["skip", "fail"] = "skip", timeout: float = 5.0):
        self.store = store
        self.directory = directory
        self.policy = policy
        self.timeout = timeout

    async def load_all(self) -> List[MenuEntry]:
        try:
            names = await run_with_timeout(self.store.list, self.directory, self.timeout)
        except ConfigNotFound:
            logger.debug(f"Menu directory {self.directory} does not exist")
            return []

        files = [n for n in names if n.endswith(MENU_SUFFIX)]
        entries = await asyncio.gather(*(self._load_file(n) for n in files))
        return order_entries([e for e in entries if e is not None])

    async def _load_file(self, name: str) -> Optional[MenuEntry]:
        path = self.store.join(self.directory, name)
        try:
            content = await run_with_timeout(self.store.read, path, self.timeout)
        except ConfigNotFound:
            # removed between listing and reading
            return None

        try:
            raw = decode_json(content)
        except ValueError as e:
            return self._reject(name, str(ConfigParseError(path, str(e))))

        try:
            return MenuEntry.model_validate(normalize_menu(raw, name[: -len(MENU_SUFFIX)]))
        except ValueError as e:  # includes pydantic ValidationError
            return self._reject(name, str(e))

    def _reject(self, name: str, reason: str) -> None:
        if self.policy == "fail":
            raise MenuLoadError(name, reason)
        logger.warning(f"Skipping menu file {name}: {reason}")
        return None
