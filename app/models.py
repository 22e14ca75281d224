# app/models.py
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Column
from sqlalchemy import JSON as SA_JSON
from sqlmodel import Field as ColumnField
from sqlmodel import SQLModel


class TimeFormat(str, Enum):
    AM = "AM"
    PM = "PM"


class PaymentMethod(str, Enum):
    TRANSFER = "transferencia"
    CASH = "efectivo"

    @classmethod
    def _missing_(cls, value):
        aliases = {"transfer": cls.TRANSFER, "cash": cls.CASH}
        if isinstance(value, str):
            return aliases.get(value.strip().lower())
        return None


class ProductLine(BaseModel):
    """Una linea del pedido. line_total == unit_price * quantity."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    quantity: int = Field(default=1, ge=1)
    unit: str = "unidades"
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    line_total: Decimal = Decimal("0")


class Order(BaseModel):
    """Pedido tal como lo maneja la app (alias camelCase en el JSON)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    customer_name: str = ""
    address: str = ""
    delivery_time: str = ""
    time_format: TimeFormat = TimeFormat.AM
    delivery_date: Optional[date] = None
    products: List[ProductLine] = Field(default_factory=list)
    payment_method: Optional[PaymentMethod] = None
    is_delivered: bool = False
    route_order: Optional[int] = Field(default=None, ge=1)
    phone: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Decimal = Decimal("0")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("delivery_date", "payment_method", "created_at", "updated_at", mode="before")
    @classmethod
    def _blank_as_none(cls, value):
        # el formulario manda "" cuando el campo esta vacio
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _payment_only_when_delivered(self):
        if self.is_delivered != (self.payment_method is not None):
            raise ValueError("paymentMethod se define si y solo si el pedido esta entregado")
        return self


# -------------------------
# TABLA
# -------------------------
class OrderRow(SQLModel, table=True):
    __tablename__ = "orders"

    id: str = ColumnField(primary_key=True)
    customer_name: str = ""
    address: str = ""
    delivery_time: str = ""
    time_format: str = "AM"
    delivery_date: Optional[date] = ColumnField(default=None, index=True)
    # snapshot de las lineas: lista de {name, quantity, unit, unitPrice, lineTotal}
    products: Optional[list] = ColumnField(default_factory=list, sa_column=Column(SA_JSON))
    payment_method: Optional[str] = None
    is_delivered: bool = False
    route_order: Optional[int] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Decimal = ColumnField(default=Decimal("0"), max_digits=14, decimal_places=2)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
