from dashcfg.field_types import NumberField, SelectField, TextField
from dashcfg.validator import validate_page_config


def _field(**overrides):
    field = {"id": "f", "name": "f", "label": "F", "type": "text"}
    field.update(overrides)
    return field


def _page(fields, **overrides):
    page = {"id": "p", "name": "P", "slug": "p", "modelName": "p", "fields": fields, "actions": []}
    page.update(overrides)
    return page


def test_valid_config_round_trips(product_raw):
    result = validate_page_config(product_raw)

    assert result.valid
    assert result.errors == {}
    dumped = result.config.model_dump(mode="json", by_alias=True, exclude_unset=True)
    assert dumped == product_raw


def test_fields_are_typed_variants(product_raw):
    config = validate_page_config(product_raw).config

    assert isinstance(config.fields[0], TextField)
    assert isinstance(config.fields[1], NumberField)
    assert isinstance(config.fields[2], SelectField)
    assert config.fields[1].default_value == 10


def test_to_dict_includes_explicit_defaults():
    config = validate_page_config(_page([_field()])).config
    data = config.to_dict()

    assert data["fields"][0]["required"] is False
    assert data["fields"][0]["ui"] is None
    assert data["actions"] == []
    assert config.effective_ui.page_size == 20
    assert config.effective_ui.sort_order == "asc"


def test_empty_fields_rejected():
    raw = {"id": "p1", "name": "Product", "slug": "products", "modelName": "product", "fields": [], "actions": []}
    result = validate_page_config(raw)

    assert not result.valid
    assert result.config is None
    assert "fields" in result.errors


def test_missing_fields_rejected():
    raw = _page([])
    del raw["fields"]
    result = validate_page_config(raw)

    assert result.errors["fields"] == "Field required"


def test_select_without_options_cites_options_path():
    result = validate_page_config(_page([_field(type="select", options=[])]))
    assert "fields.0.options" in result.errors

    result = validate_page_config(_page([_field(type="select")]))
    assert "fields.0.options" in result.errors


def test_all_violations_reported_at_once():
    raw = _page(
        [
            _field(id="a", name="a", type="select", options=[]),
            _field(id="b", name="b", type="number", validation={"min": 5, "max": 1}),
            _field(id="c", name="c", type="colour"),
        ],
        slug="",
        modelName="",
        ui={"layout": "grid", "sortOrder": "up"},
        actions=[{"id": "x", "name": "X", "type": "archive", "method": "PATCH"}],
    )
    errors = validate_page_config(raw).errors

    assert "fields.0.options" in errors
    assert "fields.1.validation" in errors
    assert "fields.2.type" in errors
    assert "slug" in errors
    assert "modelName" in errors
    assert "ui.layout" in errors
    assert "ui.sortOrder" in errors
    assert "actions.0.type" in errors
    assert "actions.0.method" in errors


def test_duplicate_field_ids_rejected():
    raw = _page([_field(id="dup", name="a"), _field(id="dup", name="b")])
    errors = validate_page_config(raw).errors

    assert errors["fields.0.id"] == "duplicate id 'dup'"
    assert errors["fields.1.id"] == "duplicate id 'dup'"


def test_type_specific_validation_keys():
    # pattern only applies to text-like fields, min/max to numbers and dates
    errors = validate_page_config(_page([_field(type="number", validation={"pattern": "x"})])).errors
    assert "fields.0.validation.pattern" in errors

    errors = validate_page_config(_page([_field(type="text", validation={"min": 1})])).errors
    assert "fields.0.validation.min" in errors


def test_no_scalar_coercion():
    errors = validate_page_config(_page([_field(type="number", defaultValue="5")])).errors
    assert "fields.0.defaultValue" in errors

    errors = validate_page_config(_page([_field(required="yes")])).errors
    assert "fields.0.required" in errors


def test_unknown_keys_rejected():
    errors = validate_page_config(_page([_field(colour="red")], extra=1)).errors

    assert "fields.0.colour" in errors
    assert "extra" in errors


def test_non_object_input():
    assert validate_page_config([1, 2]).errors == {"": "expected a JSON object"}


def test_method_mismatch_is_only_a_warning():
    raw = _page([_field()], actions=[{"id": "d", "name": "D", "type": "delete", "method": "POST"}])
    result = validate_page_config(raw)

    assert result.valid
    assert "actions.0.method" in result.warnings
    assert "actions.0.confirmation" in result.warnings


def test_table_degrade_warning():
    raw = _page([_field(ui={"showInTable": False})])
    result = validate_page_config(raw)

    assert result.valid
    assert "fields" in result.warnings
    assert result.config.table_fields() == list(result.config.fields)


def test_absolute_endpoint_rejected():
    raw = _page([_field()], actions=[{"id": "a", "name": "A", "type": "custom", "endpoint": "https://evil.test/x"}])
    assert "actions.0.endpoint" in validate_page_config(raw).errors
