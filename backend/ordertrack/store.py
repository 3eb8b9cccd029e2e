"""In-memory order store and the directory, catalog and fleet collaborators the engine consumes."""
from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Iterable, Iterator, Optional

from .domain_errors import MaterialNotFound, OrderNotFound, UserNotFound, ValidationError
from .models import DRIVER_STATUSES, FleetDriver, MaterialLine, Order, User


class InMemoryOrderStore:
    """Explicitly-owned order collection, most recently created first.

    Each order has its own lock so two concurrent mutations of one order are
    serialized; ``next_sequence`` is guarded separately so order numbers are
    never handed out twice.
    """

    def __init__(self, orders: Optional[Iterable[Order]] = None) -> None:
        self._orders: list[Order] = []
        self._by_id: dict[str, Order] = {}
        self._order_locks: dict[str, Lock] = {}
        self._guard = Lock()
        self._sequence = 0
        for order in orders or ():
            self._append_seed(order)

    def _append_seed(self, order: Order) -> None:
        if order.id in self._by_id:
            raise ValidationError(f"Duplicate order id: {order.id}", details={"orderId": order.id})
        self._orders.append(order)
        self._by_id[order.id] = order
        self._order_locks[order.id] = Lock()
        self._sequence += 1

    def next_sequence(self) -> int:
        with self._guard:
            self._sequence += 1
            return self._sequence

    def add(self, order: Order) -> Order:
        with self._guard:
            if order.id in self._by_id:
                raise ValidationError(f"Duplicate order id: {order.id}", details={"orderId": order.id})
            self._orders.insert(0, order)
            self._by_id[order.id] = order
            self._order_locks[order.id] = Lock()
        return order

    def get(self, order_id: str) -> Optional[Order]:
        return self._by_id.get(order_id)

    def require(self, order_id: str) -> Order:
        order = self.get(order_id)
        if order is None:
            raise OrderNotFound("Order not found", details={"orderId": order_id})
        return order

    def list(self) -> list[Order]:
        with self._guard:
            return list(self._orders)

    @contextmanager
    def locked(self, order_id: str) -> Iterator[Order]:
        """Hold the order's mutation lock for the duration of the block."""
        order = self.require(order_id)
        lock = self._order_locks[order_id]
        with lock:
            yield order

    def __len__(self) -> int:
        return len(self._orders)


class UserDirectory:
    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: dict[str, User] = {user.id: user for user in users}

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def require(self, user_id: str) -> User:
        user = self.get(user_id)
        if user is None:
            raise UserNotFound("User not found", details={"userId": user_id})
        return user

    def list(self, role: Optional[str] = None) -> list[User]:
        users = list(self._users.values())
        if role is not None:
            users = [user for user in users if user.role == role]
        return users


class MaterialCatalog:
    """Warehouse catalog; ``quantity_available`` tracks stock on hand."""

    def __init__(self, materials: Iterable[MaterialLine] = ()) -> None:
        self._materials: dict[str, MaterialLine] = {material.id: material for material in materials}
        self._lock = Lock()

    def get(self, material_id: str) -> Optional[MaterialLine]:
        return self._materials.get(material_id)

    def require(self, material_id: str) -> MaterialLine:
        material = self.get(material_id)
        if material is None:
            raise MaterialNotFound("Material not found", details={"materialId": material_id})
        return material

    def list(
        self,
        category: Optional[str] = None,
        supplier: Optional[str] = None,
        low_stock_below: Optional[float] = None,
    ) -> list[MaterialLine]:
        """Catalog items; category and supplier match case-insensitive substrings."""
        materials = list(self._materials.values())
        if category:
            materials = [material for material in materials if category.lower() in material.category.lower()]
        if supplier:
            materials = [material for material in materials if supplier.lower() in material.supplier.lower()]
        if low_stock_below is not None:
            materials = [material for material in materials if material.quantity_available < low_stock_below]
        return materials

    @contextmanager
    def locked(self, material_id: str) -> Iterator[MaterialLine]:
        material = self.require(material_id)
        with self._lock:
            yield material


class FleetRoster:
    def __init__(self, drivers: Iterable[FleetDriver] = ()) -> None:
        self._drivers: dict[str, FleetDriver] = {driver.id: driver for driver in drivers}
        self._lock = Lock()

    def get(self, driver_id: str) -> Optional[FleetDriver]:
        return self._drivers.get(driver_id)

    def list(self) -> list[FleetDriver]:
        return list(self._drivers.values())

    def available(self) -> list[FleetDriver]:
        return [driver for driver in self._drivers.values() if driver.status in {"available", "loading"}]

    def set_status(self, driver_id: str, status: str) -> None:
        if status not in DRIVER_STATUSES:
            raise ValidationError(f"Unknown driver status: {status}", details={"status": status})
        with self._lock:
            driver = self._drivers.get(driver_id)
            if driver is None:
                raise UserNotFound("Driver not found", details={"driverId": driver_id})
            driver.status = status
