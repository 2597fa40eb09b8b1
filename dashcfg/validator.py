"""
Config validator: raw JSON structure -> PageConfig, or every violation found.
Pure function; errors are returned as data keyed by dotted JSON path.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from dashcfg.field_types import FieldConfig, field_model_for
from dashcfg.page_schema import ActionConfig, PageConfig

logger = logging.getLogger(__name__)

ROOT_PATH = ""

# Keys validated item by item before the page model sees them
_ITEM_KEYS = ("fields", "actions")


class ValidationResult(BaseModel):
    config: Optional[PageConfig] = None
    errors: Dict[str, str] = Field(default_factory=dict)
    warnings: Dict[str, str] = Field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return self.config is not None and not self.errors


def format_path(loc: Tuple[Any, ...], prefix: str = "") -> str:
    parts = [prefix] if prefix else []
    parts.extend(str(p) for p in loc)
    return ".".join(parts)


def _message(err: dict) -> str:
    msg = err["msg"]
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return msg


def _add(errors: Dict[str, str], path: str, message: str):
    if path in errors:
        if message not in errors[path].split("; "):
            errors[path] = f"{errors[path]}; {message}"
    else:
        errors[path] = message


def _collect(errors: Dict[str, str], exc: ValidationError, prefix: str = ""):
    for err in exc.errors():
        _add(errors, format_path(err["loc"], prefix), _message(err))


# ── Item validation ───────────────────────────────────

def _validate_field(item: Any, path: str, errors: Dict[str, str]) -> Optional[FieldConfig]:
    if not isinstance(item, dict):
        _add(errors, path, "expected an object")
        return None
    model = field_model_for(item.get("type"))
    if model is None:
        if "type" not in item:
            _add(errors, f"{path}.type", "Field required")
        else:
            _add(errors, f"{path}.type", f"unknown field type {item.get('type')!r}")
        return None
    try:
        return model.model_validate(item)
    except ValidationError as e:
        _collect(errors, e, path)
        return None


def _validate_action(item: Any, path: str, errors: Dict[str, str]) -> Optional[ActionConfig]:
    try:
        return ActionConfig.model_validate(item)
    except ValidationError as e:
        _collect(errors, e, path)
        return None


def _validate_items(raw: dict, key: str, build, errors: Dict[str, str], required: bool) -> List[Any]:
    """Validate a list of descriptors; returns the ones that passed."""
    if key not in raw:
        if required:
            _add(errors, key, "Field required")
        return []
    items = raw[key]
    if not isinstance(items, list):
        _add(errors, key, "Input should be a valid list")
        return []
    if required and not items:
        _add(errors, key, f"at least one entry is required in '{key}'")
        return []
    built = []
    for i, item in enumerate(items):
        result = build(item, f"{key}.{i}", errors)
        if result is not None:
            built.append(result)
    return built


def _check_unique(raw_items: Any, key: str, attr: str, errors: Dict[str, str]):
    if not isinstance(raw_items, list):
        return
    values = [item.get(attr) if isinstance(item, dict) else None for item in raw_items]
    counts = Counter(v for v in values if isinstance(v, str))
    for i, v in enumerate(values):
        if isinstance(v, str) and counts[v] > 1:
            _add(errors, f"{key}.{i}.{attr}", f"duplicate {attr} '{v}'")


# ── Advisory checks ───────────────────────────────────

def _advisories(page: PageConfig) -> Dict[str, str]:
    warnings: Dict[str, str] = {}
    for i, action in enumerate(page.actions):
        expected = action.expected_method()
        if action.method and expected and action.method != expected:
            warnings[f"actions.{i}.method"] = (
                f"'{action.type}' actions conventionally use {expected}, got {action.method}"
            )
        if action.type == "delete" and not action.confirmation:
            warnings[f"actions.{i}.confirmation"] = "delete action has no confirmation prompt"
    if not any(f.show_in_table for f in page.fields):
        warnings["fields"] = "no field has showInTable; the table shows all fields"
    ui = page.effective_ui
    if ui.sort_by and page.get_field(ui.sort_by) is None and all(f.name != ui.sort_by for f in page.fields):
        warnings["ui.sortBy"] = f"'{ui.sort_by}' does not name a field"
    return warnings


def validate_page_config(raw: Any) -> ValidationResult:
    """
    Validate a raw (already JSON-decoded) page config.

    All violations are collected in one pass: header keys, every field and
    every action are checked independently, then the cross-item rules.
    """
    errors: Dict[str, str] = {}
    if not isinstance(raw, dict):
        return ValidationResult(errors={ROOT_PATH: "expected a JSON object"})

    fields = _validate_items(raw, "fields", _validate_field, errors, required=True)
    actions = _validate_items(raw, "actions", _validate_action, errors, required=False)
    _check_unique(raw.get("fields"), "fields", "id", errors)
    _check_unique(raw.get("fields"), "fields", "name", errors)
    _check_unique(raw.get("actions"), "actions", "id", errors)

    candidate = {k: v for k, v in raw.items() if k not in _ITEM_KEYS}
    candidate["fields"] = fields
    candidate["actions"] = actions

    page = None
    try:
        page = PageConfig.model_validate(candidate)
    except ValidationError as e:
        for err in e.errors():
            # list problems were already reported per item
            if err["loc"] and err["loc"][0] in _ITEM_KEYS:
                continue
            _add(errors, format_path(err["loc"]), _message(err))

    if errors:
        return ValidationResult(errors=errors)

    warnings = _advisories(page)
    for path, message in warnings.items():
        logger.info(f"[{page.model_name}] {path}: {message}")
    return ValidationResult(config=page, warnings=warnings)
