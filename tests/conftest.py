from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import create_engine

from app.catalog import build_catalog
from app.main import create_app
from app.models import Order, ProductLine, TimeFormat
from app.services import OrderService
from app.store import MemoryOrderStore, SQLOrderStore


class Clock:
    """Reloj de prueba: avanza un segundo en cada llamada."""

    def __init__(self):
        self.now = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def catalog():
    return build_catalog([
        {"name": "Arepas de maíz", "units": ["unidades"], "price": 8000},
        {"name": "Queso tipo paisa", "units": ["kilo", "libra"], "price": {"kilo": 18000, "libra": 8000}},
        {"name": "Limones", "units": ["unidades"], "price": 500},
    ])


@pytest.fixture
def store(clock):
    return MemoryOrderStore(clock=clock)


@pytest.fixture
def sql_store(tmp_path, clock):
    engine = create_engine(f"sqlite:///{tmp_path / 'pedidos.db'}")
    return SQLOrderStore(engine, clock=clock)


@pytest.fixture(params=["memory", "sql"])
def any_store(request, store, sql_store):
    return store if request.param == "memory" else sql_store


@pytest.fixture
def service(store, catalog):
    counter = iter(range(1, 10_000))
    return OrderService(store, catalog, id_factory=lambda: f"auto-{next(counter)}")


@pytest.fixture
def client(store, catalog):
    return TestClient(create_app(store=store, catalog=catalog))


@pytest.fixture
def make_order(catalog):
    def _make(id="A", day="2025-01-06", quantity=3, **changes):
        price = catalog.price_for("Arepas de maíz", "unidades")
        data = dict(
            id=id,
            customer_name="Ana Gómez",
            address="Calle 10 # 4-21",
            delivery_time="9:00",
            time_format=TimeFormat.AM,
            delivery_date=date.fromisoformat(day),
            products=[ProductLine(
                name="Arepas de maíz",
                quantity=quantity,
                unit="unidades",
                unit_price=price,
                line_total=price * quantity,
            )],
            phone="3001234567",
            total_amount=price * quantity,
        )
        data.update(changes)
        return Order(**data)

    return _make


@pytest.fixture
def order_payload():
    def _payload(id="A", day="2025-01-06", quantity=3, **changes):
        data = {
            "id": id,
            "customerName": "Ana Gómez",
            "address": "Calle 10 # 4-21",
            "deliveryTime": "9:00",
            "timeFormat": "AM",
            "deliveryDate": day,
            "products": [{
                "name": "Arepas de maíz",
                "quantity": quantity,
                "unit": "unidades",
                "unitPrice": 8000,
                "lineTotal": 0,
            }],
            "isDelivered": False,
        }
        data.update(changes)
        return data

    return _payload
