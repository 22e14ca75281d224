from typing import List, Optional


class OrderError(Exception):
    """Base para los errores del libro de pedidos."""


class OrderValidationError(OrderError):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__("Faltan campos obligatorios: " + ", ".join(self.missing))


class StoreUnavailableError(OrderError):
    """El almacenamiento de pedidos no respondio."""


class OrderNotFoundError(OrderError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Pedido no encontrado: {order_id}")


class PartialBatchError(OrderError):
    """Un lote de guardados (reordenar ruta) quedo aplicado a medias.

    Cada guardado es idempotente por id, asi que reenviar el orden completo
    es seguro.
    """

    def __init__(self, updated: List[str], failed: List[str], cause: Optional[Exception] = None):
        self.updated = list(updated)
        self.failed = list(failed)
        self.cause = cause
        super().__init__(
            f"Lote incompleto: {len(self.updated)} guardados, {len(self.failed)} fallidos"
        )
