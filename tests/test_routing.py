from datetime import date

import pytest

from app.errors import PartialBatchError, StoreUnavailableError
from app.routing import apply_route, move_index, move_order, next_route_order, reorder_day, resequence
from app.store import MemoryOrderStore

DAY = date(2025, 1, 6)


class FlakyStore(MemoryOrderStore):
    """Falla al guardar los ids indicados."""

    def __init__(self, *args, fail_ids=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_ids = set(fail_ids)

    def upsert(self, order):
        if order.id in self.fail_ids:
            raise StoreUnavailableError("caido")
        return super().upsert(order)


def routes(orders, day=DAY):
    return {o.id: o.route_order for o in orders if o.delivery_date == day}


def test_next_route_order(make_order):
    assert next_route_order([], DAY) == 1
    orders = [make_order(id="a", route_order=1), make_order(id="b", route_order=4),
              make_order(id="x", day="2025-01-07", route_order=9)]
    assert next_route_order(orders, DAY) == 5
    assert next_route_order(orders, DAY, exclude_id="b") == 2


def test_resequence_is_dense(make_order):
    orders = [make_order(id="a", route_order=3), make_order(id="b", route_order=8)]
    assert [o.route_order for o in resequence(orders)] == [1, 2]
    assert orders[0].route_order == 3


def test_move_order_before_after_and_rank(make_order):
    day = [make_order(id=i, route_order=n) for n, i in enumerate("abcd", start=1)]

    assert [o.id for o in move_order(day, "d", "b", "before")] == ["a", "d", "b", "c"]
    assert [o.id for o in move_order(day, "a", "c", "after")] == ["b", "c", "a", "d"]
    # arrastrar hacia abajo ocupa la posicion del destino
    assert [o.id for o in move_order(day, "a", "c", "rank")] == ["b", "c", "a", "d"]
    assert [o.id for o in move_order(day, "d", "b", "rank")] == ["a", "d", "b", "c"]
    assert [o.route_order for o in move_order(day, "d", "b")] == [1, 2, 3, 4]


def test_move_order_requires_same_day(make_order):
    day = [make_order(id="a", route_order=1)]
    with pytest.raises(ValueError):
        move_order(day, "a", "zz")
    with pytest.raises(ValueError):
        move_order(day, "a", "a", "sideways")


def test_move_index(make_order):
    day = [make_order(id=i, route_order=n) for n, i in enumerate("abc", start=1)]
    moved = move_index(day, 2, 0)
    assert [(o.id, o.route_order) for o in moved] == [("c", 1), ("a", 2), ("b", 3)]
    with pytest.raises(IndexError):
        move_index(day, 0, 3)


def test_reorder_swaps_two_orders(store, make_order):
    store.upsert(make_order(id="A", route_order=1))
    store.upsert(make_order(id="B", route_order=2))

    orders = reorder_day(store, DAY, ["B", "A"])
    assert routes(orders) == {"A": 2, "B": 1}


def test_reorder_rejects_incomplete_permutation(store, make_order):
    store.upsert(make_order(id="A", route_order=1))
    store.upsert(make_order(id="B", route_order=2))
    with pytest.raises(ValueError):
        reorder_day(store, DAY, ["B"])


def test_gaps_after_delete_until_resequenced(store, make_order):
    for n, i in enumerate("abc", start=1):
        store.upsert(make_order(id=i, route_order=n))
    orders = store.delete_by_id("b")
    assert routes(orders) == {"a": 1, "c": 3}

    orders = apply_route(store, sorted(orders, key=lambda o: o.route_order))
    assert routes(orders) == {"a": 1, "c": 2}


def test_partial_batch_then_retry(clock, make_order):
    store = FlakyStore(clock=clock)
    for n, i in enumerate("abc", start=1):
        store.upsert(make_order(id=i, route_order=n))

    target = list(reversed(store.list()))
    store.fail_ids = {"a"}
    with pytest.raises(PartialBatchError) as info:
        apply_route(store, target)
    assert info.value.updated == ["c", "b"]
    assert info.value.failed == ["a"]
    # aplicado a medias: a conserva su posicion anterior
    assert routes(store.list()) == {"a": 1, "b": 2, "c": 1}

    store.fail_ids = set()
    orders = apply_route(store, target)
    assert routes(orders) == {"a": 3, "b": 2, "c": 1}
    assert sorted(routes(orders).values()) == [1, 2, 3]
