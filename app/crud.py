# app/crud.py
from typing import List, Optional

from sqlmodel import select

from .models import OrderRow


def list_orders(session) -> List[OrderRow]:
    return session.exec(select(OrderRow)).all()


def get_order(session, order_id: str) -> Optional[OrderRow]:
    return session.get(OrderRow, order_id)


def upsert_order(session, data: dict) -> OrderRow:
    # data: columnas snake_case (ver app.mapping.to_database)
    row = session.get(OrderRow, data["id"])
    if row is None:
        row = OrderRow(**data)
    else:
        for key, value in data.items():
            setattr(row, key, value)
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def delete_order(session, order_id: str) -> bool:
    row = session.get(OrderRow, order_id)
    if not row:
        return False
    session.delete(row)
    session.commit()
    return True
