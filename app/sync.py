# app/sync.py
"""Capa de cache local y sincronizacion periodica del lado del cliente.

OrderBook envuelve el store principal: guarda una copia del ultimo listado
bueno en un archivo JSON, la sirve cuando el principal no responde y aplica
los guardados fallidos de forma optimista sobre la copia local (el error se
sigue reportando a quien llamo).
"""
import hashlib
import json
import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, List, Optional

from app.config import CACHE_PATH, REFRESH_INTERVAL
from app.errors import StoreUnavailableError
from app.mapping import order_to_json
from app.models import Order
from app.remote import HttpOrderStore
from app.store import OrderStore, utcnow

logger = logging.getLogger(__name__)

CONNECTED = "connected"
LOCAL = "local"
ERROR = "error"


class LocalCache:
    def __init__(self, path: str):
        self.path = path

    def read(self) -> Optional[List[Order]]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            logger.warning("Cache local ilegible (%s): %s", self.path, e)
            return None
        return [Order.model_validate(o) for o in data]

    def write(self, orders: List[Order]) -> None:
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([order_to_json(o) for o in orders], f, ensure_ascii=False)
        os.replace(tmp, self.path)


def fingerprint(orders: List[Order]) -> str:
    payload = sorted((order_to_json(o) for o in orders), key=lambda o: o["id"])
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


class OrderBook(OrderStore):
    """Store del cliente: principal + cache local.

    Los cambios de estado (lista, status, cache) se aplican bajo `_lock`.
    Un refresco que leyo del principal mientras corria un guardado descarta
    lo que leyo.
    """

    def __init__(self, primary: OrderStore, cache: LocalCache, clock: Callable[[], datetime] = utcnow):
        self.primary = primary
        self.cache = cache
        self._clock = clock
        self.orders: List[Order] = []
        self.status = LOCAL
        self.error: Optional[str] = None
        self.last_sync: Optional[datetime] = None
        self._fingerprint: Optional[str] = None
        self._listeners: List[Callable[[List[Order]], None]] = []
        self._editing = 0
        self._saving = 0
        self._saves = 0
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # -------------------------
    # ESTADO
    # -------------------------
    def subscribe(self, listener: Callable[[List[Order]], None]) -> None:
        """Registra un listener que recibe la lista cada vez que cambia.

        Se llama desde el hilo que aplico el cambio (el de refresco en
        segundo plano incluido) y con `_lock` tomado: no debe bloquear.
        Puede leer el libro desde el mismo hilo.
        """
        with self._lock:
            self._listeners.append(listener)

    def _set_orders(self, orders: List[Order]) -> bool:
        with self._lock:
            fp = fingerprint(orders)
            if fp == self._fingerprint:
                return False
            self._fingerprint = fp
            self.orders = [o.model_copy(deep=True) for o in orders]
            for listener in list(self._listeners):
                listener(list(self.orders))
            return True

    def _connected(self, orders: List[Order]) -> bool:
        with self._lock:
            self.status = CONNECTED
            self.error = None
            self.last_sync = self._clock()
            self.cache.write(orders)
            return self._set_orders(orders)

    def _known_orders(self) -> List[Order]:
        # antes de la primera carga la ultima lista buena es la de la cache
        if self._fingerprint is not None:
            return list(self.orders)
        return self.cache.read() or []

    def _save_locally(self, orders: List[Order], message: str) -> None:
        with self._lock:
            self.status = ERROR
            self.error = message
            self.cache.write(orders)
            self._set_orders(orders)

    @property
    def busy(self) -> bool:
        return self._editing > 0 or self._saving > 0

    @contextmanager
    def editing(self):
        """Mientras el dialogo de edicion esta abierto no se refresca."""
        with self._lock:
            self._editing += 1
        try:
            yield self
        finally:
            with self._lock:
                self._editing -= 1

    @contextmanager
    def _save(self):
        with self._lock:
            self._saving += 1
            self._saves += 1
        try:
            yield
        finally:
            with self._lock:
                self._saving -= 1

    # -------------------------
    # OrderStore
    # -------------------------
    def list(self) -> List[Order]:
        self.load()
        with self._lock:
            return [o.model_copy(deep=True) for o in self.orders]

    def _fetch(self) -> Optional[List[Order]]:
        try:
            return self.primary.list()
        except StoreUnavailableError as e:
            logger.warning("Usando datos locales: %s", e)
            return None

    def _apply(self, orders: Optional[List[Order]]) -> bool:
        with self._lock:
            if orders is not None:
                return self._connected(orders)
            self.status = LOCAL
            self.error = "Usando datos locales - Sin conexión al servidor"
            cached = self.cache.read()
            return self._set_orders(cached) if cached is not None else False

    def load(self) -> bool:
        """Lee del principal; si no responde usa la cache local.

        Devuelve True si la lista cambio.
        """
        return self._apply(self._fetch())

    def refresh(self) -> bool:
        """Refresco periodico: se salta mientras se edita o se guarda."""
        with self._lock:
            if self.busy:
                logger.debug("Refresco suspendido (edicion o guardado en curso)")
                return False
            saves = self._saves

        orders = self._fetch()

        with self._lock:
            if self.busy or saves != self._saves:
                logger.debug("Refresco descartado: hubo un guardado durante la lectura")
                return False
            changed = self._apply(orders)
        if not changed:
            logger.debug("Refresco sin cambios")
        return changed

    def upsert(self, order: Order) -> List[Order]:
        with self._save():
            try:
                orders = self.primary.upsert(order)
            except StoreUnavailableError:
                local = [o for o in self._known_orders() if o.id != order.id] + [order]
                self._save_locally(local, "Error de conexión. Guardado localmente.")
                raise
            self._connected(orders)
            return [o.model_copy(deep=True) for o in orders]

    def delete_by_id(self, order_id: str) -> List[Order]:
        with self._save():
            try:
                orders = self.primary.delete_by_id(order_id)
            except StoreUnavailableError:
                local = [o for o in self._known_orders() if o.id != order_id]
                self._save_locally(local, "Error de conexión.")
                raise
            self._connected(orders)
            return [o.model_copy(deep=True) for o in orders]

    # -------------------------
    # REFRESCO EN SEGUNDO PLANO
    # -------------------------
    def start(self, interval: float) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, args=(interval,), daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self, interval: float) -> None:
        self.refresh()
        while not self._stop.wait(interval):
            self.refresh()


def open_order_book(base_url: str, cache_path: str = CACHE_PATH, interval: float = REFRESH_INTERVAL,
                    session=None, start: bool = True) -> OrderBook:
    """Libro de pedidos del cliente contra la API, con cache local y refresco periodico."""
    book = OrderBook(HttpOrderStore(base_url, session=session), LocalCache(cache_path))
    if start:
        book.start(interval)
    return book
