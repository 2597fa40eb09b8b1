import json
from datetime import date

import pytest
from fastapi.testclient import TestClient

from dashcfg.settings import AppSettings
from main import create_app

from conftest import MENUS, PAGES, write_json


def _client(store, **settings):
    app = create_app(AppSettings(root=".", pages_dir=PAGES, menus_dir=MENUS, **settings), store=store)
    return TestClient(app)


def test_get_page_config(store, product_raw):
    write_json(store, f"{PAGES}/product.json", product_raw)
    resp = _client(store).get("/config/page/product")

    assert resp.status_code == 200
    body = resp.json()
    assert body["modelName"] == "product"
    assert body["ui"]["pageSize"] == 25
    assert body["fields"][2]["options"][0] == {"label": "Book", "value": "book", "color": None}


def test_unknown_page_is_404(store):
    resp = _client(store).get("/config/page/nonexistent")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Config not found"}


def test_invalid_page_is_422(store):
    write_json(store, f"{PAGES}/product.json", {
        "id": "p1", "name": "Product", "slug": "products", "modelName": "product", "fields": [], "actions": [],
    })
    resp = _client(store).get("/config/page/product")

    assert resp.status_code == 422
    assert "fields" in resp.json()["errors"]


def test_io_failure_is_500(store):
    store.fail(f"{PAGES}/product.json")
    resp = _client(store).get("/config/page/product")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to load config"}


def test_list_pages(store, product_raw):
    write_json(store, f"{PAGES}/product.json", product_raw)
    assert _client(store).get("/config/pages").json() == ["product"]


def test_validate_endpoint(store, product_raw):
    client = _client(store)

    ok = client.post("/config/validate", json=product_raw).json()
    assert ok["valid"] is True
    assert ok["errors"] == {}

    product_raw["fields"] = []
    bad = client.post("/config/validate", json=product_raw).json()
    assert bad["valid"] is False
    assert "fields" in bad["errors"]


def test_menus(store):
    write_json(store, f"{MENUS}/apps.json", {"title": "Apps", "url": "/apps", "icon": "IconApps"})
    write_json(store, f"{MENUS}/orders.json", {"title": "Orders", "url": "/orders", "icon": "IconOrders", "order": 1})
    resp = _client(store).get("/config/menus")

    assert resp.status_code == 200
    assert resp.json() == [
        {"id": "orders", "name": "Orders", "path": "/orders", "icon": "IconOrders", "order": 1, "isActive": None},
        {"id": "apps", "name": "Apps", "path": "/apps", "icon": "IconApps", "order": 999, "isActive": None},
    ]


def test_no_menus_is_empty_list(store):
    resp = _client(store).get("/config/menus")

    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.parametrize("policy, status", [("skip", 200), ("fail", 500)])
def test_menu_policy_at_boundary(store, policy, status):
    write_json(store, f"{MENUS}/apps.json", {"title": "Apps", "url": "/apps"})
    store.write(f"{MENUS}/broken.json", "{")
    resp = _client(store, menu_failure_policy=policy).get("/config/menus")

    assert resp.status_code == status


def test_menu_listing_failure_is_500(store):
    store.fail(MENUS)
    resp = _client(store).get("/config/menus")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to load menus"}


def test_reload_clears_cache(store, product_raw):
    write_json(store, f"{PAGES}/product.json", product_raw)
    client = _client(store, cache_enabled=True)
    client.get("/config/page/product")

    assert client.post("/config/reload").json()["cleared"] == 1
    assert client.post("/config/reload").json()["cleared"] == 0


def test_reload_without_cache(store):
    assert _client(store).post("/config/reload").json()["cleared"] == 0


def test_non_finite_menu_order_does_not_break_menus(store):
    write_json(store, f"{MENUS}/apps.json", {"title": "Apps", "url": "/apps", "order": 2})
    store.write(f"{MENUS}/bad.json", '{"title": "Bad", "url": "/bad", "order": NaN}')
    write_json(store, f"{MENUS}/zz.json", {"title": "Last file", "url": "/zz", "order": 1})
    resp = _client(store).get("/config/menus")

    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()] == ["zz", "apps"]


def test_non_finite_page_value_is_422(store, product_raw):
    text = json.dumps(product_raw).replace('"defaultValue": 10', '"defaultValue": Infinity')
    store.write(f"{PAGES}/product.json", text)
    resp = _client(store).get("/config/page/product")

    assert resp.status_code == 422
    assert list(resp.json()["errors"]) == [""]


def test_form_defaults_route(store, product_raw):
    write_json(store, f"{PAGES}/product.json", product_raw)
    resp = _client(store).get("/config/page/product/defaults")

    assert resp.status_code == 200
    assert resp.json() == {"price": 10, "active": True, "released": date.today().isoformat()}


def test_check_record_route(store, product_raw):
    write_json(store, f"{PAGES}/product.json", product_raw)
    client = _client(store)

    ok = client.post("/config/page/product/records/check", json={
        "record": {"sku": "ABC-1", "price": 5, "category": "game", "released": "2024-01-01", "active": True},
    }).json()
    assert ok == {"valid": True, "errors": {}}

    bad = client.post("/config/page/product/records/check", json={"record": {"price": 5000}}).json()
    assert bad["valid"] is False
    assert bad["errors"] == {"sku": "is required", "price": "must be <= 1000"}

    partial = client.post("/config/page/product/records/check", json={"record": {"price": 5}, "partial": True})
    assert partial.json() == {"valid": True, "errors": {}}


def test_check_record_unknown_page_is_404(store):
    resp = _client(store).post("/config/page/nothing/records/check", json={"record": {}})

    assert resp.status_code == 404
    assert resp.json() == {"error": "Config not found"}


def test_list_query_route(store, product_raw):
    write_json(store, f"{PAGES}/product.json", product_raw)
    client = _client(store)

    assert client.get("/config/page/product/query").json() == {
        "page": 1, "pageSize": 25, "sortBy": "sku", "sortOrder": "desc", "offset": 0,
    }
    resp = client.get("/config/page/product/query", params={"page": 3, "pageSize": 10, "sortBy": "price", "sortOrder": "up"})
    assert resp.json() == {"page": 3, "pageSize": 10, "sortBy": "price", "sortOrder": "desc", "offset": 20}
