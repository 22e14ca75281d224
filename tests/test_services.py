from datetime import date
from decimal import Decimal

import pytest

from app.errors import OrderNotFoundError, OrderValidationError, StoreUnavailableError
from app.models import Order, PaymentMethod, ProductLine

DAY = date(2025, 1, 6)


def test_validation_lists_missing_fields(service):
    with pytest.raises(OrderValidationError) as info:
        service.create_order(Order(id="", customer_name="  ", address="Calle 1"))
    assert info.value.missing == ["customerName", "deliveryTime", "deliveryDate", "products"]
    assert service.list_orders() == []


def test_create_assigns_id_and_appends_to_route(service, make_order):
    a = service.create_order(make_order(id=""))
    b = service.create_order(make_order(id=""))
    other_day = service.create_order(make_order(id="", day="2025-01-07"))

    assert (a.id, b.id) == ("auto-1", "auto-2")
    assert (a.route_order, b.route_order, other_day.route_order) == (1, 2, 1)
    assert a.created_at is not None


def test_route_scenario_move_b_before_a(service, make_order):
    a = service.create_order(make_order(id="A"))
    b = service.create_order(make_order(id="B"))
    assert (a.route_order, b.route_order) == (1, 2)

    service.move("B", "A", "before")
    assert [(o.id, o.route_order) for o in service.orders_for_date(DAY)] == [("B", 1), ("A", 2)]


def test_reorder_day_with_full_permutation(service, make_order):
    for i in "ABC":
        service.create_order(make_order(id=i))
    service.reorder_day("2025-01-06", ["C", "A", "B"])
    assert [(o.id, o.route_order) for o in service.orders_for_date(DAY)] == [("C", 1), ("A", 2), ("B", 3)]


def test_totals_recomputed_before_saving(service, make_order):
    stale = make_order(id="A", total_amount=Decimal("1"))
    stale = stale.model_copy(update={"products": [
        ProductLine(name="Arepas de maíz", quantity=5, unit="unidades", unit_price=Decimal("8000"), line_total=Decimal("0")),
    ]})
    saved = service.create_order(stale)
    assert saved.products[0].line_total == Decimal("40000")
    assert saved.total_amount == Decimal("40000")


def test_mark_delivered_preserves_other_fields(service, make_order):
    before = service.create_order(make_order(id="A", notes="casa esquinera")).model_dump()
    after = service.mark_delivered("A", "cash").model_dump()

    assert after["is_delivered"] is True
    assert after["payment_method"] == PaymentMethod.CASH
    changed = {"is_delivered", "payment_method", "updated_at"}
    assert {k: v for k, v in after.items() if k not in changed} == \
        {k: v for k, v in before.items() if k not in changed}


def test_mark_delivered_unknown_order(service):
    with pytest.raises(OrderNotFoundError):
        service.mark_delivered("nope", PaymentMethod.TRANSFER)


def test_edit_keeps_id_and_created_at(service, make_order):
    created = service.create_order(make_order(id="A"))
    edited = service.edit_order("A", customer_name="Ana María", id="B", created_at=None)
    assert edited.id == "A"
    assert edited.customer_name == "Ana María"
    assert edited.created_at == created.created_at
    assert edited.route_order == created.route_order


def test_edit_to_other_date_gets_fresh_route_order(service, make_order):
    service.create_order(make_order(id="A"))
    service.create_order(make_order(id="B"))
    service.create_order(make_order(id="C", day="2025-01-07"))

    moved = service.edit_order("A", delivery_date=date(2025, 1, 7))
    assert moved.route_order == 2
    # el dia anterior queda con hueco hasta reordenar
    assert [(o.id, o.route_order) for o in service.orders_for_date(DAY)] == [("B", 2)]
    service.resequence_day(DAY)
    assert [(o.id, o.route_order) for o in service.orders_for_date(DAY)] == [("B", 1)]


def test_delete_is_idempotent(service, make_order):
    service.create_order(make_order(id="A"))
    assert service.delete_order("missing") != []
    assert service.delete_order("A") == []
    assert service.delete_order("A") == []


def test_store_unavailable_is_reported(service, store, make_order):
    service.create_order(make_order(id="A"))
    before = store.get("A")
    store.online = False
    with pytest.raises(StoreUnavailableError):
        service.edit_order("A", address="Otra dirección")
    store.online = True
    assert store.get("A") == before


def test_summary(service, make_order):
    service.create_order(make_order(id="A"))
    service.create_order(make_order(id="B", day="2025-01-13"))
    service.mark_delivered("A", PaymentMethod.TRANSFER)

    summary = service.summary()
    assert [w["weekKey"] for w in summary["weeks"]] == ["2025-01-13", "2025-01-06"]
    assert summary["totals"] == {
        "total": "48000", "delivered": "24000", "pending": "24000", "count": 2, "deliveredCount": 1,
    }


def test_line_edits_price_from_catalog(service, store, make_order):
    service.create_order(make_order(id="A", quantity=3))

    order = service.add_line("A")
    assert len(order.products) == 2
    order = service.edit_line("A", 1, "name", "Limones")
    order = service.edit_line("A", 1, "quantity", 4)
    assert order.products[1].unit_price == Decimal("500")
    assert order.total_amount == Decimal("26000")
    assert store.get("A").total_amount == Decimal("26000")

    with pytest.raises(IndexError):
        service.edit_line("A", 5, "quantity", 2)

    order = service.remove_line("A", 0)
    assert [p.name for p in order.products] == ["Limones"]
    assert order.total_amount == Decimal("2000")
    assert order.route_order == 1
