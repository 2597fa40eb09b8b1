import copy
import json
import os
import sys

import pytest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dashcfg.storage import MemoryStore

PAGES = "config/pages"
MENUS = "config/data/menus"

PRODUCT_PAGE = {
    "id": "p1",
    "name": "Product",
    "slug": "products",
    "modelName": "product",
    "description": "Catalogue items",
    "fields": [
        {"id": "sku", "name": "sku", "label": "SKU", "type": "text", "required": True,
         "validation": {"pattern": "[A-Z]{3}-[0-9]+"}},
        {"id": "price", "name": "price", "label": "Price", "type": "number",
         "defaultValue": 10, "validation": {"min": 0, "max": 1000}},
        {"id": "category", "name": "category", "label": "Category", "type": "select",
         "options": [{"label": "Book", "value": "book"}, {"label": "Game", "value": "game"}]},
        {"id": "released", "name": "released", "label": "Released", "type": "date",
         "ui": {"showInTable": False}},
        {"id": "active", "name": "active", "label": "Active", "type": "boolean", "defaultValue": True},
    ],
    "actions": [
        {"id": "create", "name": "New", "type": "create", "method": "POST", "permissions": ["product:create"]},
        {"id": "remove", "name": "Delete", "type": "delete", "method": "DELETE",
         "confirmation": "Delete this product?", "permissions": ["product:delete", "admin"]},
    ],
    "permissions": {"read": ["product:read"], "delete": ["product:delete"]},
    "ui": {"layout": "table", "pageSize": 25, "sortBy": "sku", "sortOrder": "desc"},
}


@pytest.fixture
def product_raw():
    return copy.deepcopy(PRODUCT_PAGE)


@pytest.fixture
def store():
    return MemoryStore()


def write_json(store, path, data):
    store.write(path, json.dumps(data))
