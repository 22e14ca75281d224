# app/import_excel.py
import logging

import pandas as pd

from .errors import OrderError, StoreUnavailableError
from .models import Order, PaymentMethod, ProductLine, TimeFormat
from .services import OrderService

logger = logging.getLogger(__name__)

TRUTHY = {"TRUE", "SI", "SÍ", "1", "X"}


def _text(value) -> str:
    # excel devuelve los telefonos como float (3001234567.0)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def parse_fecha(value):
    if value in ("", None):
        return None
    try:
        return pd.to_datetime(value, dayfirst=isinstance(value, str) and "/" in value).date()
    except (ValueError, TypeError):
        return None


def row_to_order(row, service: OrderService) -> Order:
    catalog = service.catalog
    producto = _text(row.get("Producto", ""))
    unidades = catalog.units_for(producto)
    unidad = _text(row.get("Unidad", "")) or (unidades[0] if unidades else "unidades")
    cantidad = int(float(row.get("Cantidad", 1) or 1))
    precio = catalog.price_for(producto, unidad)

    products = []
    if producto:
        products.append(ProductLine(
            name=producto,
            quantity=cantidad,
            unit=unidad,
            unit_price=precio,
            line_total=precio * cantidad,
        ))

    entregado = _text(row.get("Entregado", "")).upper() in TRUTHY
    pago = _text(row.get("Pago", ""))
    jornada = _text(row.get("Jornada", "")).upper() or "AM"

    return Order(
        id="",
        customer_name=_text(row.get("Cliente", "")),
        address=_text(row.get("Direccion", "")),
        phone=_text(row.get("Telefono", "")) or None,
        delivery_date=parse_fecha(row.get("Fecha de entrega", "")),
        delivery_time=_text(row.get("Hora", "")),
        time_format=TimeFormat(jornada),
        products=products,
        notes=_text(row.get("Notas", "")) or None,
        is_delivered=entregado,
        payment_method=PaymentMethod(pago) if entregado else None,
    )


def import_orders_frame(df: pd.DataFrame, service: OrderService) -> dict:
    """Una fila = un pedido con un producto. Devuelve {created, errors}."""
    created = 0
    errors = []

    for idx, row in df.iterrows():
        try:
            service.create_order(row_to_order(row, service))
            created += 1
        except StoreUnavailableError:
            raise
        except (OrderError, ValueError) as e:
            errors.append(f"Fila {idx + 1}: {e}")

    logger.info("Importacion excel: %d creados, %d con error", created, len(errors))
    return {"created": created, "errors": errors}


def import_from_excel(path_excel, service: OrderService) -> dict:
    df = pd.read_excel(path_excel, engine="openpyxl").fillna("")
    return import_orders_frame(df, service)
