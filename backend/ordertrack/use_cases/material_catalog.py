"""Warehouse catalog use-cases: item edits and quick stock adjustments."""
from __future__ import annotations

import logging

from ..domain_errors import ValidationError
from ..models import MaterialLine, User
from ..schemas import MaterialUpdate
from ..security import require_permission
from ..store import MaterialCatalog

logger = logging.getLogger(__name__)

CATALOG_TEXT_FIELDS: tuple[str, ...] = ("name", "description", "unit", "supplier", "category")


def stock_status(material: MaterialLine, *, low_stock_below: float) -> str:
    if material.quantity_available <= 0:
        return "out_of_stock"
    if material.quantity_available < low_stock_below:
        return "low_stock"
    return "in_stock"


def _validated_changes(changes: MaterialUpdate) -> dict[str, object]:
    values = changes.model_dump(exclude_none=True)
    if not values:
        raise ValidationError("No material changes given", details={"fields": sorted(MaterialUpdate.model_fields)})

    for field_name in CATALOG_TEXT_FIELDS:
        if field_name in values:
            text = str(values[field_name]).strip()
            if not text:
                raise ValidationError(f"{field_name} is required", details={"field": field_name})
            values[field_name] = text
    if values.get("quantity_available", 0) < 0:
        raise ValidationError("Quantity cannot be negative", details={"field": "quantity_available"})
    if "unit_price" in values and values["unit_price"] <= 0:
        raise ValidationError("Unit price must be greater than 0", details={"field": "unit_price"})
    return values


def update_material_use_case(
    *,
    catalog: MaterialCatalog,
    material_id: str,
    changes: MaterialUpdate,
    current_user: User,
) -> MaterialLine:
    """Edit a catalog item. Lines already copied into orders are not touched."""
    require_permission(current_user, "canUpdateMaterialAvailability")
    values = _validated_changes(changes)

    with catalog.locked(material_id) as material:
        for field_name, value in values.items():
            setattr(material, field_name, value)

    logger.info(
        "material.updated material=%s fields=%s by=%s",
        material.id,
        ",".join(sorted(values)),
        current_user.id,
    )
    return material


def adjust_material_quantity_use_case(
    *,
    catalog: MaterialCatalog,
    material_id: str,
    change: float,
    current_user: User,
) -> MaterialLine:
    """Add ``change`` (possibly negative) to stock on hand, flooring at zero."""
    require_permission(current_user, "canUpdateMaterialAvailability")
    if change == 0:
        raise ValidationError("Quantity change must be non-zero", details={"field": "change"})

    with catalog.locked(material_id) as material:
        material.quantity_available = max(0, material.quantity_available + change)

    logger.info(
        "material.adjusted material=%s change=%s quantity=%s by=%s",
        material.id,
        change,
        material.quantity_available,
        current_user.id,
    )
    return material
