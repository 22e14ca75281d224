from fastapi import APIRouter

from app.api.orders import router as orders_router
from app.api.catalog import router as catalog_router

api_router = APIRouter()

# API
api_router.include_router(orders_router)
api_router.include_router(catalog_router)
