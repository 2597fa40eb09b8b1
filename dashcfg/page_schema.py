"""
Page descriptors: actions, permissions, UI defaults and the page itself.
"""

import re
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import Field, SerializeAsAny, StrictInt, StrictStr, field_validator

from dashcfg.field_types import DescriptorModel, FieldConfig, field_model_for


ActionType = Literal["create", "edit", "delete", "export", "custom"]
HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]
Operation = Literal["create", "read", "update", "delete"]
Layout = Literal["table", "card", "list"]
SortOrder = Literal["asc", "desc"]

# URL-safe identifier, also used for config file names; match with fullmatch()
IDENTIFIER_PATTERN = r"^[A-Za-z0-9_-]+$"
IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_-]+")

_EXPECTED_METHODS: Dict[str, Optional[str]] = {
    "create": "POST",
    "edit": "PUT",
    "delete": "DELETE",
    "export": "GET",
    "custom": None,
}


# ── Actions ───────────────────────────────────────────

class ActionConfig(DescriptorModel):
    id: StrictStr = Field(min_length=1)
    name: StrictStr
    type: ActionType
    endpoint: Optional[StrictStr] = None
    method: Optional[HttpMethod] = None
    confirmation: Optional[StrictStr] = None
    permissions: List[StrictStr] = Field(default_factory=list)

    @field_validator("endpoint")
    @classmethod
    def _relative(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and ("://" in v or v.startswith("//")):
            raise ValueError("endpoint must be a relative path")
        return v

    def expected_method(self) -> Optional[str]:
        """HTTP verb conventionally paired with this action type (advisory)."""
        return _EXPECTED_METHODS[self.type]

    def effective_method(self) -> str:
        return self.method or self.expected_method() or "POST"

    def resolve_endpoint(self, model_name: str) -> str:
        """Explicit endpoint, or one derived from the entity name and action type."""
        if self.endpoint:
            return self.endpoint
        if self.type == "create":
            return f"/{model_name}"
        if self.type == "export":
            return f"/{model_name}/export"
        if self.type in ("edit", "delete"):
            return f"/{model_name}/{{id}}"
        return f"/{model_name}/actions/{self.id}"

    def allowed_for(self, tokens: Iterable[str]) -> bool:
        return set(self.permissions).issubset(tokens)


# ── Page ──────────────────────────────────────────────

class PagePermissions(DescriptorModel):
    create: Optional[List[StrictStr]] = None
    read: Optional[List[StrictStr]] = None
    update: Optional[List[StrictStr]] = None
    delete: Optional[List[StrictStr]] = None


class PageUI(DescriptorModel):
    layout: Layout = "table"
    page_size: StrictInt = Field(default=20, gt=0)
    sort_by: Optional[StrictStr] = None
    sort_order: SortOrder = "asc"


class PageConfig(DescriptorModel):
    """
    Validated description of one entity page.
    Build it through ``dashcfg.validator.validate_page_config`` to get
    per-path errors; direct ``model_validate`` works but reports item
    errors less precisely.
    """
    id: StrictStr = Field(min_length=1)
    name: StrictStr
    slug: StrictStr = Field(min_length=1, pattern=IDENTIFIER_PATTERN)
    model_name: StrictStr = Field(min_length=1, pattern=IDENTIFIER_PATTERN)
    description: Optional[StrictStr] = None
    fields: List[SerializeAsAny[FieldConfig]] = Field(min_length=1)
    actions: List[ActionConfig] = Field(default_factory=list)
    permissions: Optional[PagePermissions] = None
    ui: Optional[PageUI] = None

    @field_validator("fields", mode="before")
    @classmethod
    def _dispatch_field_types(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        resolved = []
        for item in v:
            if isinstance(item, dict):
                model = field_model_for(item.get("type"))
                if model is None:
                    raise ValueError(f"unknown field type {item.get('type')!r}")
                item = model.model_validate(item)
            resolved.append(item)
        return resolved

    @property
    def effective_ui(self) -> PageUI:
        return self.ui or PageUI()

    def get_field(self, field_id: str) -> Optional[FieldConfig]:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def table_fields(self) -> List[FieldConfig]:
        """Columns for the list view; all fields when none is marked for the table."""
        marked = [f for f in self.fields if f.show_in_table]
        return marked or list(self.fields)

    def form_fields(self) -> List[FieldConfig]:
        return [f for f in self.fields if f.show_in_form]

    def can(self, operation: Operation, tokens: Iterable[str]) -> bool:
        """Operations without a configured token set are unrestricted."""
        required = getattr(self.permissions, operation, None) if self.permissions else None
        if required is None:
            return True
        return set(required).issubset(tokens)

    def visible_actions(self, tokens: Iterable[str]) -> List[ActionConfig]:
        tokens = set(tokens)
        return [a for a in self.actions if a.allowed_for(tokens)]

    def to_dict(self) -> Dict[str, Any]:
        """camelCase JSON-ready representation, explicit defaults included."""
        return self.model_dump(mode="json", by_alias=True)
