# app/remote.py
import logging
from typing import List

import requests

from app.errors import StoreUnavailableError
from app.mapping import order_to_json
from app.models import Order
from app.store import OrderStore

logger = logging.getLogger(__name__)


class HttpOrderStore(OrderStore):
    """Cliente del endpoint /orders/ de la API.

    `session` puede ser cualquier objeto con `request(method, url, json=, timeout=)`
    (requests.Session por defecto).
    """

    def __init__(self, base_url: str, session=None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, payload: dict = None) -> List[Order]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("%s %s sin conexion: %s", method, url, e)
            raise StoreUnavailableError("Sin conexion al servidor") from e

        if response.status_code >= 500:
            logger.warning("%s %s -> %s", method, url, response.status_code)
            raise StoreUnavailableError(f"Error de servidor ({response.status_code})")
        if response.status_code >= 400:
            # error del pedido enviado, no del servidor
            response.raise_for_status()

        data = response.json()
        return [Order.model_validate(o) for o in data.get("orders", [])]

    def list(self) -> List[Order]:
        return self._call("GET", "/orders/")

    def upsert(self, order: Order) -> List[Order]:
        return self._call("POST", "/orders/", {"order": order_to_json(order)})

    def delete_by_id(self, order_id: str) -> List[Order]:
        return self._call("DELETE", "/orders/", {"orderId": order_id})
