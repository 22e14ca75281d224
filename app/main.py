# app/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.catalog import ProductCatalog, load_catalog
from app.config import CATALOG_PATH, CORS_ORIGINS, LOG_LEVEL
from app.errors import (
    OrderNotFoundError,
    OrderValidationError,
    PartialBatchError,
    StoreUnavailableError,
)
from app.mapping import order_to_json
from app.routes import api_router
from app.services import OrderService
from app.store import OrderStore, SQLOrderStore

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def _last_known_orders(request: Request) -> list:
    # los errores devuelven tambien la ultima lista conocida
    try:
        return [order_to_json(o) for o in request.app.state.service.list_orders()]
    except StoreUnavailableError:
        return []


def _error(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    body = {"error": message, **extra, "orders": _last_known_orders(request)}
    return JSONResponse(body, status_code=status_code)


def create_app(store: OrderStore = None, catalog: ProductCatalog = None) -> FastAPI:
    app = FastAPI(title="API Pedidos a Domicilio")

    # ===================== CORS =====================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ===================== STORE =====================
    if store is None:
        store = SQLOrderStore(create_tables=False)

        @app.on_event("startup")
        def startup():
            store.create_tables()

    app.state.service = OrderService(store, catalog or load_catalog(CATALOG_PATH))

    # ===================== ERRORES =====================
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(request, exc.status_code, str(exc.detail))

    @app.exception_handler(OrderValidationError)
    async def validation_error(request: Request, exc: OrderValidationError):
        return _error(request, 400, "Por favor completa todos los campos obligatorios", missing=exc.missing)

    @app.exception_handler(OrderNotFoundError)
    async def not_found(request: Request, exc: OrderNotFoundError):
        return _error(request, 404, "Pedido no encontrado", orderId=exc.order_id)

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable(request: Request, exc: StoreUnavailableError):
        logger.error("Store no disponible en %s %s: %s", request.method, request.url.path, exc)
        return _error(request, 503, "Error de conexión con la base de datos")

    @app.exception_handler(PartialBatchError)
    async def partial_batch(request: Request, exc: PartialBatchError):
        logger.error("Ruta guardada a medias: %s", exc)
        return _error(
            request, 503, "La ruta no se guardó completa, vuelve a intentarlo",
            updated=exc.updated, failed=exc.failed,
        )

    # ===================== ROUTES =====================
    app.include_router(api_router)
    return app


app = create_app()


def run():
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
