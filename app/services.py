# app/services.py
import logging
import uuid
from datetime import date
from typing import Callable, List, Optional, Union

from app import aggregation, pricing, routing
from app.catalog import ProductCatalog, default_catalog
from app.errors import OrderNotFoundError, OrderValidationError
from app.models import Order, PaymentMethod
from app.store import OrderStore

logger = logging.getLogger(__name__)

# (atributo, nombre en el JSON)
REQUIRED_FIELDS = [
    ("customer_name", "customerName"),
    ("address", "address"),
    ("delivery_time", "deliveryTime"),
    ("delivery_date", "deliveryDate"),
]


def new_order_id() -> str:
    return uuid.uuid4().hex


def find(orders: List[Order], order_id: str) -> Optional[Order]:
    return next((o for o in orders if o.id == order_id), None)


class OrderService:
    """Operaciones del libro de pedidos sobre un OrderStore inyectado."""

    def __init__(
        self,
        store: OrderStore,
        catalog: Optional[ProductCatalog] = None,
        id_factory: Callable[[], str] = new_order_id,
    ):
        self.store = store
        self.catalog = catalog or default_catalog()
        self.id_factory = id_factory

    # -------------------------
    # VALIDACION
    # -------------------------
    @staticmethod
    def validate(order: Order) -> None:
        missing = []
        for attr, name in REQUIRED_FIELDS:
            value = getattr(order, attr)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        if not order.products:
            missing.append("products")
        if missing:
            raise OrderValidationError(missing)

    # -------------------------
    # LECTURA
    # -------------------------
    def list_orders(self) -> List[Order]:
        return self.store.list()

    def get_order(self, order_id: str) -> Order:
        order = find(self.store.list(), order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def orders_for_date(self, day: Union[date, str]) -> List[Order]:
        return aggregation.orders_by_date(self.store.list(), day)

    def orders_for_week(self, week: Union[date, str]) -> List[Order]:
        return aggregation.orders_by_week(self.store.list(), week)

    def summary(self) -> dict:
        orders = self.store.list()
        return {
            "dates": aggregation.daily_summaries(orders),
            "weeks": aggregation.weekly_summaries(orders),
            "totals": aggregation.totals(orders).to_json(),
        }

    # -------------------------
    # ESCRITURA
    # -------------------------
    def save_order(self, order: Order) -> List[Order]:
        """Crea o reemplaza un pedido (upsert por id) y devuelve la lista completa.

        Un pedido nuevo, o uno que cambia de fecha, queda al final de la ruta
        de su dia.
        """
        self.validate(order)
        order = pricing.recompute_order(order)

        current = self.store.list()
        existing = find(current, order.id)
        if existing is None:
            # un id nuevo siempre va al final del dia, aunque traiga posicion
            route_order = routing.next_route_order(current, order.delivery_date)
        elif existing.delivery_date != order.delivery_date:
            route_order = routing.next_route_order(current, order.delivery_date, exclude_id=order.id)
        else:
            route_order = order.route_order or existing.route_order
        order = order.model_copy(update={"route_order": route_order})

        return self.store.upsert(order)

    def create_order(self, draft: Order) -> Order:
        order = draft.model_copy(update={
            "id": draft.id or self.id_factory(),
            "route_order": None,
            "created_at": None,
            "updated_at": None,
        })
        if find(self.store.list(), order.id) is not None:
            order = order.model_copy(update={"id": self.id_factory()})
        saved = find(self.save_order(order), order.id)
        logger.info("Pedido %s creado para %s (ruta #%s)", saved.id, saved.delivery_date, saved.route_order)
        return saved

    def edit_order(self, order_id: str, **changes) -> Order:
        """Reemplaza cualquier campo salvo id y created_at."""
        existing = self.get_order(order_id)
        data = existing.model_dump()
        data.update(changes)
        data["id"] = existing.id
        data["created_at"] = existing.created_at
        return find(self.save_order(Order.model_validate(data)), order_id)

    def mark_delivered(self, order_id: str, payment_method: Union[PaymentMethod, str]) -> Order:
        existing = self.get_order(order_id)
        updated = existing.model_copy(update={
            "is_delivered": True,
            "payment_method": PaymentMethod(payment_method),
        })
        saved = find(self.store.upsert(updated), order_id)
        logger.info("Pedido %s entregado (%s)", order_id, saved.payment_method.value)
        return saved

    def delete_order(self, order_id: str) -> List[Order]:
        # borrar un id inexistente no es error: devuelve la lista sin cambios
        return self.store.delete_by_id(order_id)

    # -------------------------
    # LINEAS DE PRODUCTO
    # -------------------------
    def _save_lines(self, order: Order) -> Order:
        return find(self.save_order(order), order.id)

    def add_line(self, order_id: str) -> Order:
        return self._save_lines(pricing.add_line(self.get_order(order_id)))

    def edit_line(self, order_id: str, index: int, field: str, value: Union[str, int]) -> Order:
        """Cambia nombre, unidad o cantidad de una linea; el precio sale del catalogo."""
        order = self.get_order(order_id)
        if not 0 <= index < len(order.products):
            raise IndexError(f"El pedido no tiene linea {index}")
        return self._save_lines(pricing.edit_line(order, index, field, value, self.catalog))

    def remove_line(self, order_id: str, index: int) -> Order:
        order = self.get_order(order_id)
        if not 0 <= index < len(order.products):
            raise IndexError(f"El pedido no tiene linea {index}")
        return self._save_lines(pricing.remove_line(order, index))

    # -------------------------
    # RUTA
    # -------------------------
    def reorder_day(self, day: Union[date, str], order_ids: List[str]) -> List[Order]:
        day = date.fromisoformat(day) if isinstance(day, str) else day
        return routing.reorder_day(self.store, day, order_ids)

    def move(self, order_id: str, target_id: str, position: str = "before") -> List[Order]:
        orders = self.store.list()
        order = find(orders, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if find(orders, target_id) is None:
            raise OrderNotFoundError(target_id)
        day_orders = aggregation.orders_by_date(orders, order.delivery_date)
        return routing.apply_route(self.store, routing.move_order(day_orders, order_id, target_id, position))

    def resequence_day(self, day: Union[date, str]) -> List[Order]:
        """Cierra los huecos que dejan los borrados en la ruta del dia."""
        return routing.apply_route(self.store, self.orders_for_date(day))
