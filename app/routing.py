# app/routing.py
"""Orden de ruta (route_order) de los pedidos de un mismo dia.

route_order solo tiene sentido dentro de una fecha de entrega. Tras
`resequence` los valores del dia son exactamente 1..N; borrar un pedido deja
huecos hasta el proximo reordenamiento, y ordenar por route_order sigue
funcionando con huecos.
"""
import logging
from datetime import date
from typing import Iterable, List, Optional

from app.aggregation import orders_by_date
from app.errors import PartialBatchError, StoreUnavailableError
from app.models import Order
from app.store import OrderStore

logger = logging.getLogger(__name__)


def next_route_order(orders: Iterable[Order], day: date, exclude_id: Optional[str] = None) -> int:
    """Siguiente posicion al final del dia (1 si el dia esta vacio)."""
    used = [
        o.route_order or 0
        for o in orders
        if o.delivery_date == day and o.id != exclude_id
    ]
    return max(used, default=0) + 1


def resequence(ordered: List[Order]) -> List[Order]:
    """Copias con route_order = posicion (desde 1) en la lista recibida."""
    return [o.model_copy(update={"route_order": i}) for i, o in enumerate(ordered, start=1)]


def move_index(ordered: List[Order], from_index: int, to_index: int) -> List[Order]:
    if not (0 <= from_index < len(ordered)) or not (0 <= to_index < len(ordered)):
        raise IndexError("Posicion fuera de la ruta")
    result = list(ordered)
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return resequence(result)


def move_order(day_orders: List[Order], order_id: str, target_id: str, position: str = "before") -> List[Order]:
    """Mueve `order_id` justo antes o despues de `target_id`, o a su posicion
    (`rank`, lo que hace arrastrar y soltar).

    `day_orders` son los pedidos de un solo dia; se ordenan por route_order
    antes de mover. Devuelve la ruta completa ya renumerada.
    """
    if position not in ("before", "after", "rank"):
        raise ValueError("position debe ser 'before', 'after' o 'rank'")

    ordered = sorted(day_orders, key=lambda o: (o.route_order is None, o.route_order or 0))
    ids = [o.id for o in ordered]
    if order_id not in ids or target_id not in ids:
        raise ValueError("Ambos pedidos deben pertenecer al mismo dia")
    if order_id == target_id:
        return resequence(ordered)

    moved = ordered.pop(ids.index(order_id))
    if position == "rank":
        # soltar sobre otro pedido: ocupa su posicion y corre los intermedios
        target_index = ids.index(target_id)
    else:
        target_index = [o.id for o in ordered].index(target_id)
        if position == "after":
            target_index += 1
    ordered.insert(target_index, moved)
    return resequence(ordered)


def apply_route(store: OrderStore, ordered: List[Order]) -> List[Order]:
    """Guarda cada pedido de la ruta con su nueva posicion, uno por uno.

    No es una transaccion: si algun guardado falla se levanta
    PartialBatchError con los ids guardados y los fallidos. Reenviar la misma
    ruta es seguro porque cada guardado es idempotente por id.
    """
    updated, failed = [], []
    last_error = None
    result: Optional[List[Order]] = None
    for order in resequence(ordered):
        try:
            result = store.upsert(order)
        except StoreUnavailableError as e:
            logger.warning("Ruta: no se pudo guardar pedido %s: %s", order.id, e)
            failed.append(order.id)
            last_error = e
            continue
        updated.append(order.id)

    if failed:
        raise PartialBatchError(updated, failed, cause=last_error)
    logger.info("Ruta guardada: %d pedidos", len(updated))
    return result if result is not None else store.list()


def reorder_day(store: OrderStore, day: date, order_ids: List[str]) -> List[Order]:
    """Aplica una permutacion completa de los pedidos del dia."""
    day_orders = orders_by_date(store.list(), day)
    by_id = {o.id: o for o in day_orders}
    if sorted(order_ids) != sorted(by_id):
        raise ValueError("La ruta debe incluir exactamente los pedidos del dia")
    return apply_route(store, [by_id[i] for i in order_ids])
