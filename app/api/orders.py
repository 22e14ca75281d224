from datetime import date, datetime, timezone
from typing import List

import io
import pandas as pd
from fastapi import APIRouter, Body, Depends, File, HTTPException, Request, UploadFile
from pydantic import ValidationError

from app import aggregation
from app.import_excel import import_orders_frame
from app.mapping import order_to_json
from app.models import Order, PaymentMethod
from app.services import OrderService, find


router = APIRouter(prefix="/orders", tags=["orders"])

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def get_service(request: Request) -> OrderService:
    return request.app.state.service


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def newest_first(orders: List[Order]) -> List[dict]:
    ordered = sorted(orders, key=lambda o: o.created_at or _OLDEST, reverse=True)
    return [order_to_json(o) for o in ordered]


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(400, "Fecha inválida")


# -------------------------
# LISTAR
# -------------------------
@router.get("/")
def api_get_orders(service: OrderService = Depends(get_service)):
    orders = service.list_orders()
    return {"orders": newest_first(orders), "timestamp": now_iso(), "total": len(orders)}


# -------------------------
# CREAR / ACTUALIZAR (upsert por id)
# -------------------------
@router.post("/")
def api_save_order(payload: dict = Body(...), service: OrderService = Depends(get_service)):
    raw = payload.get("order")
    if not isinstance(raw, dict) or not raw.get("id"):
        raise HTTPException(400, "Pedido con ID requerido")
    try:
        order = Order.model_validate(raw)
    except ValidationError as e:
        raise HTTPException(400, f"Pedido inválido: {e.errors()[0]['msg']}")

    existed = find(service.list_orders(), order.id) is not None
    orders = service.save_order(order)
    return {
        "orders": newest_first(orders),
        "message": "Pedido actualizado" if existed else "Pedido creado",
        "timestamp": now_iso(),
    }


# -------------------------
# RESUMENES
# -------------------------
@router.get("/summary")
def api_summary(service: OrderService = Depends(get_service)):
    return service.summary()


@router.get("/by-date/{day}")
def api_orders_by_date(day: str, service: OrderService = Depends(get_service)):
    d = parse_day(day)
    orders = service.orders_for_date(d)
    return {
        "date": d.isoformat(),
        "label": aggregation.format_date(d),
        "orders": [order_to_json(o) for o in orders],
        "totals": aggregation.totals(orders).to_json(),
    }


@router.get("/by-week/{week}")
def api_orders_by_week(week: str, service: OrderService = Depends(get_service)):
    key = aggregation.week_key(parse_day(week))
    orders = service.orders_for_week(key)
    start, end = aggregation.week_range(key)
    return {
        "weekKey": key.isoformat(),
        "label": aggregation.format_week_label(key),
        "start": start.isoformat(),
        "end": end.isoformat(),
        "days": aggregation.daily_summaries(orders),
        "orders": [order_to_json(o) for d in aggregation.unique_dates(orders)
                   for o in aggregation.orders_by_date(orders, d)],
        "totals": aggregation.totals(orders).to_json(),
    }


# -------------------------
# RUTA DEL DIA
# -------------------------
@router.put("/route/{day}")
def api_reorder_day(day: str, payload: dict = Body(...), service: OrderService = Depends(get_service)):
    ids = payload.get("orderIds")
    if not isinstance(ids, list):
        raise HTTPException(400, "Falta orderIds")
    d = parse_day(day)
    try:
        service.reorder_day(d, ids)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"date": d.isoformat(), "orders": [order_to_json(o) for o in service.orders_for_date(d)]}


@router.post("/route/{day}/move")
def api_move_in_route(day: str, payload: dict = Body(...), service: OrderService = Depends(get_service)):
    d = parse_day(day)
    order_id = payload.get("orderId")
    target_id = payload.get("targetId")
    if not order_id or not target_id:
        raise HTTPException(400, "Faltan orderId y targetId")
    if service.get_order(order_id).delivery_date != d:
        raise HTTPException(400, "El pedido no pertenece a ese día")
    try:
        service.move(order_id, target_id, payload.get("position", "rank"))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"date": d.isoformat(), "orders": [order_to_json(o) for o in service.orders_for_date(d)]}


@router.post("/route/{day}/resequence")
def api_resequence_day(day: str, service: OrderService = Depends(get_service)):
    d = parse_day(day)
    service.resequence_day(d)
    return {"date": d.isoformat(), "orders": [order_to_json(o) for o in service.orders_for_date(d)]}


# -------------------------
# IMPORTAR PEDIDOS DESDE EXCEL
# -------------------------
@router.post("/import-excel")
async def api_import_orders_excel(file: UploadFile = File(...), service: OrderService = Depends(get_service)):
    content = await file.read()
    df = pd.read_excel(io.BytesIO(content), engine="openpyxl").fillna("")
    return import_orders_frame(df, service)


# -------------------------
# LINEAS DE PRODUCTO (precio desde el catalogo)
# -------------------------
@router.post("/{order_id}/products")
def api_add_line(order_id: str, service: OrderService = Depends(get_service)):
    return {"order": order_to_json(service.add_line(order_id)), "timestamp": now_iso()}


@router.patch("/{order_id}/products/{index}")
def api_edit_line(order_id: str, index: int, payload: dict = Body(...),
                  service: OrderService = Depends(get_service)):
    field = payload.get("field")
    if not field or "value" not in payload:
        raise HTTPException(400, "Faltan field y value")
    try:
        order = service.edit_line(order_id, index, field, payload["value"])
    except IndexError as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, f"Línea inválida: {e}")
    return {"order": order_to_json(order), "timestamp": now_iso()}


@router.delete("/{order_id}/products/{index}")
def api_remove_line(order_id: str, index: int, service: OrderService = Depends(get_service)):
    try:
        order = service.remove_line(order_id, index)
    except IndexError as e:
        raise HTTPException(404, str(e))
    return {"order": order_to_json(order), "timestamp": now_iso()}


# -------------------------
# ENTREGAR
# -------------------------
@router.post("/{order_id}/deliver")
def api_mark_delivered(order_id: str, payload: dict = Body(...), service: OrderService = Depends(get_service)):
    try:
        method = PaymentMethod(payload.get("paymentMethod"))
    except ValueError:
        raise HTTPException(400, "Método de pago inválido")
    order = service.mark_delivered(order_id, method)
    return {"order": order_to_json(order), "timestamp": now_iso()}


@router.get("/{order_id}")
def api_get_order(order_id: str, service: OrderService = Depends(get_service)):
    return {"order": order_to_json(service.get_order(order_id))}


# -------------------------
# BORRAR PEDIDO
# -------------------------
def _delete(order_id: str, service: OrderService) -> dict:
    before = len(service.list_orders())
    orders = service.delete_order(order_id)
    return {
        "orders": newest_first(orders),
        "message": "Pedido eliminado" if len(orders) < before else "Pedido no encontrado",
        "timestamp": now_iso(),
    }


@router.delete("/")
def api_delete_order_body(payload: dict = Body(...), service: OrderService = Depends(get_service)):
    order_id = payload.get("orderId")
    if not order_id:
        raise HTTPException(400, "ID de pedido requerido")
    return _delete(order_id, service)


@router.delete("/{order_id}")
def api_delete_order(order_id: str, service: OrderService = Depends(get_service)):
    return _delete(order_id, service)
