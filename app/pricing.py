# app/pricing.py
from decimal import Decimal
from typing import Union

from app.catalog import ProductCatalog
from app.models import Order, ProductLine


def new_line() -> ProductLine:
    return ProductLine(name="", quantity=1, unit="unidades", unit_price=Decimal("0"), line_total=Decimal("0"))


def update_line(line: ProductLine, field: str, value: Union[str, int], catalog: ProductCatalog) -> ProductLine:
    """Devuelve una copia de la linea con el campo cambiado y el total al dia.

    Cambiar el producto o la unidad vuelve a buscar el precio en el catalogo;
    cambiar la cantidad conserva el precio unitario.
    """
    if field not in ("name", "unit", "quantity"):
        raise ValueError(f"Campo de producto no editable: {field}")

    data = line.model_dump()
    data[field] = value
    updated = ProductLine.model_validate(data)

    if field in ("name", "unit"):
        unit_price = catalog.price_for(updated.name, updated.unit)
    else:
        unit_price = updated.unit_price

    return updated.model_copy(update={
        "unit_price": unit_price,
        "line_total": unit_price * updated.quantity,
    })


def recompute_order(order: Order) -> Order:
    # calcular totales server-side
    lines = [
        p.model_copy(update={"line_total": p.unit_price * p.quantity})
        for p in order.products
    ]
    total = sum((p.line_total for p in lines), Decimal("0"))
    return order.model_copy(update={"products": lines, "total_amount": total})


def add_line(order: Order) -> Order:
    return recompute_order(order.model_copy(update={"products": [*order.products, new_line()]}))


def edit_line(order: Order, index: int, field: str, value: Union[str, int], catalog: ProductCatalog) -> Order:
    lines = list(order.products)
    lines[index] = update_line(lines[index], field, value, catalog)
    return recompute_order(order.model_copy(update={"products": lines}))


def remove_line(order: Order, index: int) -> Order:
    lines = [p for i, p in enumerate(order.products) if i != index]
    return recompute_order(order.model_copy(update={"products": lines}))
