# app/aggregation.py
"""Agrupaciones por dia y por semana (semana de lunes a domingo).

Todas las funciones son puras: reciben la lista de pedidos y devuelven
listas nuevas, nunca reordenan la lista recibida.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple, Union

from app.models import Order

DAYS_OF_WEEK = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]
MONTHS = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]

ZERO = Decimal("0")


@dataclass(frozen=True)
class Totals:
    total: Decimal = ZERO
    delivered: Decimal = ZERO
    pending: Decimal = ZERO
    count: int = 0
    delivered_count: int = 0

    def to_json(self) -> dict:
        return {
            "total": str(self.total),
            "delivered": str(self.delivered),
            "pending": str(self.pending),
            "count": self.count,
            "deliveredCount": self.delivered_count,
        }


def _as_date(value: Union[date, str]) -> date:
    return date.fromisoformat(value) if isinstance(value, str) else value


def _route_key(order: Order):
    # sin route_order van al final del dia
    return (order.route_order is None, order.route_order or 0)


def week_key(day: Union[date, str]) -> date:
    """Lunes de la semana que contiene `day`."""
    day = _as_date(day)
    return day - timedelta(days=day.weekday())


def week_range(key: Union[date, str]) -> Tuple[date, date]:
    start = _as_date(key)
    return start, start + timedelta(days=6)


def orders_by_date(orders: Iterable[Order], day: Union[date, str]) -> List[Order]:
    day = _as_date(day)
    return sorted((o for o in orders if o.delivery_date == day), key=_route_key)


def orders_by_week(orders: Iterable[Order], key: Union[date, str]) -> List[Order]:
    key = _as_date(key)
    return [o for o in orders if o.delivery_date is not None and week_key(o.delivery_date) == key]


def unique_dates(orders: Iterable[Order]) -> List[date]:
    return sorted({o.delivery_date for o in orders if o.delivery_date is not None})


def unique_weeks(orders: Iterable[Order], most_recent_first: bool = False) -> List[date]:
    weeks = sorted({week_key(o.delivery_date) for o in orders if o.delivery_date is not None})
    if most_recent_first:
        weeks.reverse()
    return weeks


def totals(orders: Iterable[Order]) -> Totals:
    total = ZERO
    delivered = ZERO
    count = 0
    delivered_count = 0
    for order in orders:
        count += 1
        total += order.total_amount
        if order.is_delivered:
            delivered += order.total_amount
            delivered_count += 1
    return Totals(
        total=total,
        delivered=delivered,
        pending=total - delivered,
        count=count,
        delivered_count=delivered_count,
    )


def totals_by_date(orders: Iterable[Order], day: Union[date, str]) -> Totals:
    return totals(orders_by_date(orders, day))


def format_date(day: Union[date, str]) -> str:
    """'Lunes 6 de enero'."""
    day = _as_date(day)
    name = DAYS_OF_WEEK[day.weekday()]
    return f"{name.capitalize()} {day.day} de {MONTHS[day.month - 1]}"


def format_week_label(key: Union[date, str]) -> str:
    start, end = week_range(key)
    if start.month == end.month:
        return f"Semana del {start.day} al {end.day} de {MONTHS[end.month - 1]}"
    return (
        f"Semana del {start.day} de {MONTHS[start.month - 1]} "
        f"al {end.day} de {MONTHS[end.month - 1]}"
    )


def daily_summaries(orders: List[Order], week: Optional[Union[date, str]] = None) -> List[dict]:
    pool = orders_by_week(orders, week) if week is not None else orders
    summaries = []
    for day in unique_dates(pool):
        summaries.append({
            "date": day.isoformat(),
            "label": format_date(day),
            "weekKey": week_key(day).isoformat(),
            "totals": totals_by_date(pool, day).to_json(),
        })
    return summaries


def weekly_summaries(orders: List[Order]) -> List[dict]:
    # vista interactiva: la semana mas reciente primero
    summaries = []
    for key in unique_weeks(orders, most_recent_first=True):
        start, end = week_range(key)
        summaries.append({
            "weekKey": key.isoformat(),
            "label": format_week_label(key),
            "start": start.isoformat(),
            "end": end.isoformat(),
            "dates": [d.isoformat() for d in unique_dates(orders_by_week(orders, key))],
            "totals": totals(orders_by_week(orders, key)).to_json(),
        })
    return summaries
