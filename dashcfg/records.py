"""
Record-level semantics a renderer or persistence layer applies on top of a
validated PageConfig: form defaults, record validation, list query defaults.
"""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel

from dashcfg.page_schema import PageConfig, SortOrder

MAX_PAGE_SIZE = 200


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def form_defaults(page: PageConfig, today: Optional[date] = None) -> Dict[str, Any]:
    """Initial values for a create form, keyed by field name."""
    today = today or date.today()
    defaults = {}
    for field in page.form_fields():
        value = field.initial_value(today)
        if value is not None:
            defaults[field.name] = value
    return defaults


def validate_record(page: PageConfig, record: Dict[str, Any], partial: bool = False) -> Dict[str, str]:
    """
    Check a submitted record against the page's form fields.
    Returns {field name: violation}; empty when the record is acceptable.
    partial=True (updates) only checks the keys that are present.
    """
    errors: Dict[str, str] = {}
    known = {f.name: f for f in page.form_fields()}

    for key in record:
        if key not in known:
            errors[key] = "unknown field"

    for name, field in known.items():
        if name not in record:
            if field.required and not partial:
                errors[name] = "is required"
            continue
        value = record[name]
        if _is_empty(value):
            if field.required:
                errors[name] = "is required"
            continue
        problem = field.check_value(value)
        if problem:
            errors[name] = problem
    return errors


class ListQuery(BaseModel):
    page: int = 1
    page_size: int
    sort_by: Optional[str] = None
    sort_order: SortOrder = "asc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def resolve_list_query(
    page: PageConfig,
    page_no: int = 1,
    page_size: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> ListQuery:
    """
    Effective pagination and sorting for a list view. Requested values win
    when usable, otherwise the page's UI defaults apply.
    """
    ui = page.effective_ui
    sortable = {f.name for f in page.fields}

    size = page_size if page_size is not None else ui.page_size
    size = max(1, min(size, MAX_PAGE_SIZE))

    column = sort_by if sort_by in sortable else ui.sort_by
    order = sort_order if sort_order in ("asc", "desc") else ui.sort_order

    return ListQuery(page=max(1, page_no), page_size=size, sort_by=column, sort_order=order)
