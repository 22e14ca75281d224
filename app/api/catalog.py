from fastapi import APIRouter, Depends, HTTPException

from app.api.orders import get_service
from app.services import OrderService

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/")
def api_get_catalog(service: OrderService = Depends(get_service)):
    return [p.to_json() for p in service.catalog.products.values()]


# -------------------------
# PRECIO POR PRODUCTO / UNIDAD
# -------------------------
@router.get("/price")
def api_get_price(name: str, unit: str = "", service: OrderService = Depends(get_service)):
    catalog = service.catalog
    if name not in catalog.products:
        raise HTTPException(404, "Producto no encontrado")
    unit = unit or catalog.units_for(name)[0]
    return {"name": name, "unit": unit, "unitPrice": str(catalog.price_for(name, unit))}
