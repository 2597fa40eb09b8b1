"""
Field descriptors: one pydantic model per field type tag.

Each variant carries its own typed ``defaultValue`` and validation payload,
so an invalid type/value combination (a ``pattern`` on a number field, a
string default on a boolean field) is rejected when the config is parsed.
New tags are added with ``register_field_type``.
"""

import math
import re
from datetime import date
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Type, Union, get_args

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainValidator,
    StrictBool,
    StrictStr,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


def _strict_number(v: Any) -> Union[int, float]:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError("Input should be a number")
    if isinstance(v, float) and not math.isfinite(v):
        raise ValueError("Input should be a finite number")
    return v


def _option_value(v: Any) -> Union[str, int, float]:
    if isinstance(v, str):
        return v
    return _strict_number(v)


# int or float, never bool or a numeric string
Number = Annotated[Union[int, float], PlainValidator(_strict_number)]
OptionValue = Annotated[Union[str, int, float], PlainValidator(_option_value)]
Predicate = Callable[[Any], bool]


class DescriptorModel(BaseModel):
    """Base for every config descriptor: camelCase JSON, strict keys, immutable."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        protected_namespaces=(),
    )


# ── Custom predicates ─────────────────────────────────

_PREDICATES: Dict[str, Predicate] = {}


def register_predicate(name: str, fn: Predicate) -> Predicate:
    """Register a named predicate usable as ``validation.custom``."""
    _PREDICATES[name] = fn
    return fn


def get_predicate(name: str) -> Optional[Predicate]:
    return _PREDICATES.get(name)


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

register_predicate("nonBlank", lambda v: isinstance(v, str) and bool(v.strip()))
register_predicate("email", lambda v: isinstance(v, str) and bool(_EMAIL_RE.match(v)))
register_predicate("positive", lambda v: isinstance(v, (int, float)) and not isinstance(v, bool) and v > 0)
register_predicate("integer", lambda v: isinstance(v, int) and not isinstance(v, bool))


def parse_iso_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string."""
    if len(value) != 10:
        raise ValueError(f"'{value}' is not an ISO date (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"'{value}' is not an ISO date (YYYY-MM-DD)") from None


# ── Validation payloads ───────────────────────────────

class CustomRule(DescriptorModel):
    custom: Optional[StrictStr] = None

    @field_validator("custom")
    @classmethod
    def _known_predicate(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in _PREDICATES:
            raise ValueError(f"unknown custom predicate '{v}'")
        return v


class TextValidation(CustomRule):
    pattern: Optional[StrictStr] = None

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid regular expression: {e}") from None
        return v


class NumberValidation(CustomRule):
    min: Optional[Number] = None
    max: Optional[Number] = None

    @model_validator(mode="after")
    def _ordered(self) -> "NumberValidation":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self


class DateValidation(CustomRule):
    min: Optional[StrictStr] = None
    max: Optional[StrictStr] = None

    @field_validator("min", "max")
    @classmethod
    def _iso(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_iso_date(v)
        return v

    @model_validator(mode="after")
    def _ordered(self) -> "DateValidation":
        if self.min is not None and self.max is not None and parse_iso_date(self.min) > parse_iso_date(self.max):
            raise ValueError(f"min ({self.min}) must not be after max ({self.max})")
        return self


class SelectOption(DescriptorModel):
    label: StrictStr
    value: OptionValue
    color: Optional[StrictStr] = None


class FieldUI(DescriptorModel):
    width: Optional[StrictStr] = None
    placeholder: Optional[StrictStr] = None
    show_in_table: StrictBool = True
    show_in_form: StrictBool = True


# ── Field variants ────────────────────────────────────

class FieldConfig(DescriptorModel):
    """Common part of every field descriptor. Subclasses pin ``type``."""
    id: StrictStr = Field(min_length=1)
    name: StrictStr = Field(min_length=1)
    label: StrictStr
    required: StrictBool = False
    ui: Optional[FieldUI] = None

    @property
    def show_in_table(self) -> bool:
        return self.ui.show_in_table if self.ui else True

    @property
    def show_in_form(self) -> bool:
        return self.ui.show_in_form if self.ui else True

    def initial_value(self, today: date) -> Any:
        """Value a create form starts with."""
        return getattr(self, "default_value", None)

    def check_value(self, value: Any) -> Optional[str]:
        """
        Check a non-null record value against this field.
        Returns a human-readable violation, or None when the value is acceptable.
        """
        problem = self._check_type(value)
        if problem:
            return problem
        rule = getattr(self, "validation", None)
        if rule is not None and rule.custom:
            if not _PREDICATES[rule.custom](value):
                return f"failed custom check '{rule.custom}'"
        return None

    def _check_type(self, value: Any) -> Optional[str]:
        return None


class TextField(FieldConfig):
    type: Literal["text"]
    validation: Optional[TextValidation] = None
    default_value: Optional[StrictStr] = None

    @field_validator("default_value")
    @classmethod
    def _default_matches(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        rule = info.data.get("validation")
        if v is not None and rule is not None and rule.pattern and not re.fullmatch(rule.pattern, v):
            raise ValueError(f"default does not match pattern '{rule.pattern}'")
        return v

    def _check_type(self, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return "must be a string"
        if self.validation and self.validation.pattern and not re.fullmatch(self.validation.pattern, value):
            return f"does not match pattern '{self.validation.pattern}'"
        return None


class RichTextField(TextField):
    type: Literal["richText"]


class NumberField(FieldConfig):
    type: Literal["number"]
    validation: Optional[NumberValidation] = None
    default_value: Optional[Number] = None

    @field_validator("default_value")
    @classmethod
    def _default_in_range(cls, v, info: ValidationInfo):
        rule = info.data.get("validation")
        if v is not None and rule is not None:
            problem = _range_problem(v, rule.min, rule.max)
            if problem:
                raise ValueError(f"default {problem}")
        return v

    def _check_type(self, value: Any) -> Optional[str]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return "must be a number"
        if isinstance(value, float) and not math.isfinite(value):
            return "must be a finite number"
        if self.validation:
            return _range_problem(value, self.validation.min, self.validation.max)
        return None


class DateField(FieldConfig):
    type: Literal["date"]
    validation: Optional[DateValidation] = None
    default_value: Optional[StrictStr] = None

    @field_validator("default_value")
    @classmethod
    def _default_is_date(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is None:
            return v
        d = parse_iso_date(v)
        rule = info.data.get("validation")
        if rule is not None:
            problem = _date_range_problem(d, rule.min, rule.max)
            if problem:
                raise ValueError(f"default {problem}")
        return v

    def initial_value(self, today: date) -> Any:
        return self.default_value if self.default_value is not None else today.isoformat()

    def _check_type(self, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return "must be an ISO date string"
        try:
            d = parse_iso_date(value)
        except ValueError as e:
            return str(e)
        if self.validation:
            return _date_range_problem(d, self.validation.min, self.validation.max)
        return None


class SelectField(FieldConfig):
    type: Literal["select"]
    options: List[SelectOption] = Field(default_factory=list, validate_default=True)
    validation: Optional[CustomRule] = None
    default_value: Optional[OptionValue] = None

    @field_validator("options")
    @classmethod
    def _non_empty(cls, v: List[SelectOption]) -> List[SelectOption]:
        if not v:
            raise ValueError("select fields require at least one option")
        seen = set()
        for opt in v:
            if opt.value in seen:
                raise ValueError(f"duplicate option value {opt.value!r}")
            seen.add(opt.value)
        return v

    @field_validator("default_value")
    @classmethod
    def _default_is_option(cls, v, info: ValidationInfo):
        options = info.data.get("options")
        if v is not None and options and v not in [o.value for o in options]:
            raise ValueError(f"default {v!r} is not one of the options")
        return v

    def _check_type(self, value: Any) -> Optional[str]:
        if isinstance(value, bool) or value not in [o.value for o in self.options]:
            return f"{value!r} is not one of the options"
        return None


class BooleanField(FieldConfig):
    type: Literal["boolean"]
    validation: Optional[CustomRule] = None
    default_value: Optional[StrictBool] = None

    def _check_type(self, value: Any) -> Optional[str]:
        return None if isinstance(value, bool) else "must be true or false"


class FileField(FieldConfig):
    type: Literal["file"]
    validation: Optional[CustomRule] = None
    default_value: Optional[StrictStr] = None

    def _check_type(self, value: Any) -> Optional[str]:
        return None if isinstance(value, str) else "must be a file reference string"


def _range_problem(value, lo, hi) -> Optional[str]:
    if lo is not None and value < lo:
        return f"must be >= {lo}"
    if hi is not None and value > hi:
        return f"must be <= {hi}"
    return None


def _date_range_problem(d: date, lo: Optional[str], hi: Optional[str]) -> Optional[str]:
    if lo is not None and d < parse_iso_date(lo):
        return f"must be on or after {lo}"
    if hi is not None and d > parse_iso_date(hi):
        return f"must be on or before {hi}"
    return None


# ── Registry ──────────────────────────────────────────

FIELD_TYPES: Dict[str, Type[FieldConfig]] = {}


def field_tag(cls: Type[FieldConfig]) -> str:
    """The ``type`` literal a field model is pinned to."""
    annotation = cls.model_fields["type"].annotation
    (tag,) = get_args(annotation)
    return tag


def register_field_type(cls: Type[FieldConfig], replace: bool = False) -> Type[FieldConfig]:
    tag = field_tag(cls)
    if tag in FIELD_TYPES and not replace:
        raise ValueError(f"Field type '{tag}' is already registered")
    FIELD_TYPES[tag] = cls
    return cls


def field_model_for(tag: Any) -> Optional[Type[FieldConfig]]:
    if not isinstance(tag, str):
        return None
    return FIELD_TYPES.get(tag)


for _cls in (TextField, RichTextField, NumberField, DateField, SelectField, BooleanField, FileField):
    register_field_type(_cls)
