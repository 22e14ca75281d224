# app/mapping.py
"""Conversion between the app's camelCase order records and the snake_case
columns used by the database.

The mapping is total: every order attribute has exactly one column and
converting one way and back gives the same record.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Union

from app.models import Order, OrderRow


FIELD_MAP: Dict[str, str] = {
    "id": "id",
    "customerName": "customer_name",
    "address": "address",
    "deliveryTime": "delivery_time",
    "timeFormat": "time_format",
    "deliveryDate": "delivery_date",
    "products": "products",
    "paymentMethod": "payment_method",
    "isDelivered": "is_delivered",
    "routeOrder": "route_order",
    "phone": "phone",
    "notes": "notes",
    "totalAmount": "total_amount",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

COLUMN_MAP: Dict[str, str] = {column: key for key, column in FIELD_MAP.items()}


def camel_to_snake(record: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(record) - set(FIELD_MAP)
    if unknown:
        raise KeyError(f"Campos desconocidos: {sorted(unknown)}")
    return {FIELD_MAP[key]: value for key, value in record.items()}


def snake_to_camel(record: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(record) - set(COLUMN_MAP)
    if unknown:
        raise KeyError(f"Columnas desconocidas: {sorted(unknown)}")
    return {COLUMN_MAP[key]: value for key, value in record.items()}


def order_to_json(order: Order) -> Dict[str, Any]:
    return order.model_dump(mode="json", by_alias=True)


def to_database(order: Order) -> Dict[str, Any]:
    """Order -> dict listo para OrderRow (columnas snake_case)."""
    record = camel_to_snake(order.model_dump(mode="python", by_alias=True))
    record["time_format"] = order.time_format.value
    record["payment_method"] = order.payment_method.value if order.payment_method else None
    record["products"] = [p.model_dump(mode="json", by_alias=True) for p in order.products]
    return record


def _as_utc(value):
    # SQLite devuelve datetimes sin zona
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def from_database(row: Union[OrderRow, Mapping[str, Any]]) -> Order:
    if isinstance(row, OrderRow):
        data = {column: getattr(row, column) for column in COLUMN_MAP}
    else:
        data = dict(row)
    data["created_at"] = _as_utc(data.get("created_at"))
    data["updated_at"] = _as_utc(data.get("updated_at"))
    data["products"] = data.get("products") or []
    return Order.model_validate(snake_to_camel(data))
