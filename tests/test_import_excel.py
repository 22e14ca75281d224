import io
from datetime import date

import pandas as pd

from app.import_excel import import_orders_frame
from app.models import PaymentMethod

COLUMNS = ["Cliente", "Direccion", "Telefono", "Fecha de entrega", "Hora", "Jornada",
           "Producto", "Cantidad", "Unidad", "Notas", "Entregado", "Pago"]


def frame(*rows):
    return pd.DataFrame([dict(zip(COLUMNS, r)) for r in rows]).fillna("")


def test_rows_become_orders(service):
    df = frame(
        ["Ana", "Calle 1", 3001234567.0, "2025-01-06", "9:00", "AM", "Arepas de maíz", 3, "", "", "", ""],
        ["Luis", "Calle 2", "", "2025-01-06", "4:00", "PM", "Queso tipo paisa", 2, "libra", "", "SI", "efectivo"],
        ["", "Calle 3", "", "2025-01-06", "5:00", "PM", "Limones", 1, "", "", "", ""],
    )
    result = import_orders_frame(df, service)

    assert result["created"] == 2
    assert len(result["errors"]) == 1
    assert result["errors"][0].startswith("Fila 3:")

    orders = service.orders_for_date(date(2025, 1, 6))
    ana, luis = orders
    assert ana.phone == "3001234567"
    assert ana.total_amount == 24000
    assert ana.route_order == 1
    assert luis.products[0].unit_price == 8000
    assert luis.is_delivered and luis.payment_method == PaymentMethod.CASH
    assert luis.route_order == 2


def test_delivered_without_payment_is_an_error(service):
    df = frame(["Ana", "Calle 1", "", "2025-01-06", "9:00", "AM", "Limones", 2, "", "", "SI", ""])
    result = import_orders_frame(df, service)
    assert result["created"] == 0
    assert result["errors"][0].startswith("Fila 1:")


def test_upload_endpoint(client):
    df = frame(["Ana", "Calle 1", "", "2025-01-07", "9:00", "AM", "Arepas de maíz", 2, "", "", "", ""])
    buf = io.BytesIO()
    df.to_excel(buf, index=False, engine="openpyxl")

    res = client.post(
        "/orders/import-excel",
        files={"file": ("pedidos.xlsx", buf.getvalue(),
                        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")},
    )
    assert res.json() == {"created": 1, "errors": []}
    orders = client.get("/orders/by-date/2025-01-07").json()["orders"]
    assert orders[0]["customerName"] == "Ana"
