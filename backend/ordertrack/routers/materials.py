"""Warehouse catalog endpoints."""
from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import get_current_user, get_engine
from ..engine import OrderLifecycleEngine
from ..models import MaterialLine, User
from ..schemas import MaterialCatalogResponse, MaterialItemResponse, MaterialQuantityAdjustment, MaterialUpdate
from ..use_cases.material_catalog import stock_status

router = APIRouter(prefix="/materials", tags=["materials"])


def _to_response(material: MaterialLine, engine: OrderLifecycleEngine) -> MaterialItemResponse:
    status = stock_status(material, low_stock_below=engine.settings.LOW_STOCK_THRESHOLD)
    return MaterialItemResponse.model_validate({**asdict(material), "stock_status": status})


@router.get("", response_model=MaterialCatalogResponse)
def list_materials(
    category: Optional[str] = Query(default=None),
    supplier: Optional[str] = Query(default=None),
    low_stock_only: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    materials = engine.list_materials(category=category, supplier=supplier, low_stock_only=low_stock_only)
    return MaterialCatalogResponse(
        items=[_to_response(material, engine) for material in materials],
        inventory_value=sum((material.quantity_available * material.unit_price for material in materials), 0.0),
    )


@router.get("/{material_id}", response_model=MaterialItemResponse)
def get_material(
    material_id: str,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return _to_response(engine.get_material(material_id), engine)


@router.patch("/{material_id}", response_model=MaterialItemResponse)
def update_material(
    material_id: str,
    data: MaterialUpdate,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return _to_response(engine.update_material(material_id, data, current_user), engine)


@router.post("/{material_id}/quantity", response_model=MaterialItemResponse)
def adjust_material_quantity(
    material_id: str,
    data: MaterialQuantityAdjustment,
    current_user: User = Depends(get_current_user),
    engine: OrderLifecycleEngine = Depends(get_engine),
):
    return _to_response(engine.adjust_material_quantity(material_id, data.change, current_user), engine)
