from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from ordertrack.config import Settings
from ordertrack.domain_errors import MaterialNotFound, Unauthorized, ValidationError
from ordertrack.engine import OrderLifecycleEngine
from ordertrack.main import create_app
from ordertrack.models import MaterialLine, User
from ordertrack.store import MaterialCatalog, UserDirectory
from ordertrack.use_cases.material_catalog import stock_status

FOREMAN = User(id="1", name="John Smith", role="site_foreman")
SHOP_MANAGER = User(id="3", name="Mike Wilson", role="shop_manager")
EMPLOYEE = User(id="5", name="David Brown", role="shop_employee")


def _catalog() -> MaterialCatalog:
    return MaterialCatalog(
        [
            MaterialLine(
                id="pipe",
                name='Steel Pipe 2"',
                unit="ft",
                quantity_available=500,
                unit_price=12.5,
                supplier="Ferguson Supply",
                category="Pipe",
            ),
            MaterialLine(
                id="coupling",
                name='Victaulic Coupling 4"',
                unit="ea",
                quantity_available=6,
                unit_price=45.0,
                supplier="Victaulic",
                category="Fittings",
            ),
            MaterialLine(
                id="valve",
                name='Gate Valve 4"',
                unit="ea",
                quantity_available=0,
                unit_price=310.0,
                supplier="Ferguson Supply",
                category="Valves",
            ),
        ]
    )


def _engine() -> OrderLifecycleEngine:
    return OrderLifecycleEngine(
        catalog=_catalog(),
        directory=UserDirectory([FOREMAN, SHOP_MANAGER, EMPLOYEE]),
        settings=Settings(),
    )


def _ids(materials: list[MaterialLine]) -> list[str]:
    return [material.id for material in materials]


def test_catalog_filters_by_supplier_category_and_low_stock() -> None:
    engine = _engine()

    assert _ids(engine.list_materials(supplier="ferguson")) == ["pipe", "valve"]
    assert _ids(engine.list_materials(category="fit")) == ["coupling"]
    assert _ids(engine.list_materials(low_stock_only=True)) == ["coupling", "valve"]
    assert _ids(engine.list_materials(supplier="ferguson", low_stock_only=True)) == ["valve"]


def test_stock_status_thresholds() -> None:
    catalog = _catalog()
    assert stock_status(catalog.require("pipe"), low_stock_below=10) == "in_stock"
    assert stock_status(catalog.require("coupling"), low_stock_below=10) == "low_stock"
    assert stock_status(catalog.require("valve"), low_stock_below=10) == "out_of_stock"


def test_shop_staff_edit_catalog_item() -> None:
    engine = _engine()

    material = engine.update_material("valve", {"quantity_available": 12, "supplier": " Grainger "}, EMPLOYEE)

    assert material.quantity_available == 12
    assert material.supplier == "Grainger"
    assert material.unit_price == 310.0
    assert engine.get_material("valve") is material


@pytest.mark.parametrize(
    ("changes", "match"),
    [
        ({}, "No material changes"),
        ({"name": "  "}, "name is required"),
        ({"quantity_available": -1}, "negative"),
        ({"unit_price": 0}, "greater than 0"),
        ({"unit_price": "cheap"}, "MaterialUpdate"),
    ],
)
def test_catalog_edit_validation(changes: dict, match: str) -> None:
    engine = _engine()
    with pytest.raises(ValidationError, match=match):
        engine.update_material("pipe", changes, SHOP_MANAGER)
    assert engine.get_material("pipe").quantity_available == 500


def test_catalog_edits_require_availability_capability() -> None:
    engine = _engine()
    with pytest.raises(Unauthorized):
        engine.update_material("pipe", {"quantity_available": 1}, FOREMAN)
    with pytest.raises(Unauthorized):
        engine.adjust_material_quantity("pipe", 5, FOREMAN)


def test_quick_quantity_adjustment_floors_at_zero() -> None:
    engine = _engine()

    assert engine.adjust_material_quantity("coupling", 4, SHOP_MANAGER).quantity_available == 10
    assert engine.adjust_material_quantity("coupling", -25, SHOP_MANAGER).quantity_available == 0

    with pytest.raises(ValidationError):
        engine.adjust_material_quantity("coupling", 0, SHOP_MANAGER)


def test_unknown_material() -> None:
    engine = _engine()
    with pytest.raises(MaterialNotFound) as exc:
        engine.adjust_material_quantity("rebar", 1, SHOP_MANAGER)
    assert exc.value.http_status == 404


def test_materials_endpoints() -> None:
    client = TestClient(create_app(_engine()))
    headers = {"X-User-Id": SHOP_MANAGER.id}

    catalog = client.get("/api/v1/materials", params={"supplier": "ferguson"}, headers=headers).json()
    assert [item["id"] for item in catalog["items"]] == ["pipe", "valve"]
    assert catalog["items"][1]["stock_status"] == "out_of_stock"
    assert catalog["inventory_value"] == 500 * 12.5

    low = client.get("/api/v1/materials", params={"low_stock_only": "true"}, headers=headers).json()
    assert [item["id"] for item in low["items"]] == ["coupling", "valve"]

    response = client.patch("/api/v1/materials/valve", json={"quantity_available": 20}, headers=headers)
    assert response.status_code == 200
    assert response.json()["stock_status"] == "in_stock"

    response = client.post("/api/v1/materials/coupling/quantity", json={"change": -2}, headers=headers)
    assert response.json()["quantity_available"] == 4

    response = client.post(
        "/api/v1/materials/coupling/quantity",
        json={"change": 1},
        headers={"X-User-Id": FOREMAN.id},
    )
    assert response.status_code == 403
    assert response.headers["content-type"].startswith("application/problem+json")

    assert client.get("/api/v1/materials/rebar", headers=headers).status_code == 404
