# app/store.py
"""Order store adapters.

Every store exposes the same three operations: list the whole order set,
upsert one order by id and delete one order by id. Mutations return the full
updated set. A store that cannot reach its backend raises
StoreUnavailableError and leaves the stored data as it was.
"""
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app import crud
from app.database import get_session, init_db
from app.errors import StoreUnavailableError
from app.mapping import from_database, to_database
from app.models import Order

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stamp(order: Order, existing: Optional[Order], now: datetime) -> Order:
    # created_at se asigna una sola vez; updated_at cambia en cada guardado
    if existing is not None and existing.created_at is not None:
        created_at = existing.created_at
    else:
        created_at = order.created_at or now
    return order.model_copy(update={"created_at": created_at, "updated_at": now}, deep=True)


class OrderStore(ABC):

    @abstractmethod
    def list(self) -> List[Order]:
        ...

    @abstractmethod
    def upsert(self, order: Order) -> List[Order]:
        ...

    @abstractmethod
    def delete_by_id(self, order_id: str) -> List[Order]:
        ...

    def get(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.list() if o.id == order_id), None)


class MemoryOrderStore(OrderStore):
    """Store en memoria (tests y desarrollo). Puede simular estar caido."""

    def __init__(self, orders: Optional[List[Order]] = None, clock: Callable[[], datetime] = utcnow):
        self._orders: Dict[str, Order] = {o.id: o.model_copy(deep=True) for o in orders or []}
        self._clock = clock
        self._lock = threading.Lock()
        self.online = True

    def _check(self):
        if not self.online:
            raise StoreUnavailableError("Almacenamiento en memoria fuera de linea")

    def _snapshot(self) -> List[Order]:
        return [o.model_copy(deep=True) for o in self._orders.values()]

    def list(self) -> List[Order]:
        self._check()
        with self._lock:
            return self._snapshot()

    def upsert(self, order: Order) -> List[Order]:
        self._check()
        with self._lock:
            self._orders[order.id] = stamp(order, self._orders.get(order.id), self._clock())
            return self._snapshot()

    def delete_by_id(self, order_id: str) -> List[Order]:
        self._check()
        with self._lock:
            self._orders.pop(order_id, None)
            return self._snapshot()


class SQLOrderStore(OrderStore):
    """Store persistente sobre SQLModel (SQLite por defecto)."""

    def __init__(self, engine=None, clock: Callable[[], datetime] = utcnow, create_tables: bool = True):
        self._engine = engine
        self._clock = clock
        if create_tables:
            self.create_tables()

    def create_tables(self) -> None:
        try:
            init_db(self._engine)
        except SQLAlchemyError as e:
            # nunca frenar el arranque por DB; cada operacion reporta el error
            logger.error("Error initializing DB: %s", e)

    def _all(self, session) -> List[Order]:
        return [from_database(row) for row in crud.list_orders(session)]

    def list(self) -> List[Order]:
        try:
            with get_session(self._engine) as s:
                return self._all(s)
        except SQLAlchemyError as e:
            logger.warning("No se pudo leer pedidos: %s", e)
            raise StoreUnavailableError("Base de datos no disponible") from e

    def upsert(self, order: Order) -> List[Order]:
        try:
            with get_session(self._engine) as s:
                row = crud.get_order(s, order.id)
                existing = from_database(row) if row else None
                stamped = stamp(order, existing, self._clock())
                crud.upsert_order(s, to_database(stamped))
                logger.info("Pedido %s %s", order.id, "actualizado" if existing else "creado")
                return self._all(s)
        except SQLAlchemyError as e:
            logger.warning("No se pudo guardar pedido %s: %s", order.id, e)
            raise StoreUnavailableError("Base de datos no disponible") from e

    def delete_by_id(self, order_id: str) -> List[Order]:
        try:
            with get_session(self._engine) as s:
                if crud.delete_order(s, order_id):
                    logger.info("Pedido %s eliminado", order_id)
                return self._all(s)
        except SQLAlchemyError as e:
            logger.warning("No se pudo eliminar pedido %s: %s", order_id, e)
            raise StoreUnavailableError("Base de datos no disponible") from e
