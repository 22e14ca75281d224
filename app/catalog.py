# app/catalog.py
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Union

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class FlatPrice:
    amount: Decimal


@dataclass(frozen=True)
class PerUnitPrice:
    prices: Mapping[str, Decimal]


Price = Union[FlatPrice, PerUnitPrice]


@dataclass(frozen=True)
class CatalogProduct:
    name: str
    units: List[str]
    price: Price

    def price_for(self, unit: str) -> Decimal:
        if isinstance(self.price, PerUnitPrice):
            return self.price.prices.get(unit, ZERO)
        return self.price.amount

    def to_json(self) -> dict:
        if isinstance(self.price, PerUnitPrice):
            price = {unit: float(amount) for unit, amount in self.price.prices.items()}
        else:
            price = float(self.price.amount)
        return {"name": self.name, "units": list(self.units), "price": price}


@dataclass
class ProductCatalog:
    """Tabla de precios estatica; nunca se modifica desde los pedidos."""

    products: Dict[str, CatalogProduct] = field(default_factory=dict)

    def names(self) -> List[str]:
        return list(self.products)

    def units_for(self, name: str) -> List[str]:
        product = self.products.get(name)
        return list(product.units) if product else []

    def price_for(self, name: str, unit: str) -> Decimal:
        product = self.products.get(name)
        if product is None:
            return ZERO
        return product.price_for(unit)


def parse_price(raw) -> Price:
    if isinstance(raw, Mapping):
        return PerUnitPrice({str(unit): Decimal(str(amount)) for unit, amount in raw.items()})
    return FlatPrice(Decimal(str(raw)))


def build_catalog(entries: List[dict]) -> ProductCatalog:
    products = {}
    for entry in entries:
        price = parse_price(entry.get("price", 0))
        units = entry.get("units")
        if not units:
            units = list(price.prices) if isinstance(price, PerUnitPrice) else ["unidades"]
        products[entry["name"]] = CatalogProduct(name=entry["name"], units=list(units), price=price)
    return ProductCatalog(products)


DEFAULT_PRODUCTS = [
    {"name": "Arepas de maíz", "units": ["unidades"], "price": 1500},
    {"name": "Kilos de masa de maíz", "units": ["kilos"], "price": 4000},
    {"name": "Queso tipo paisa", "units": ["kilo", "libra"], "price": {"kilo": 18000, "libra": 8000}},
    {"name": "Queso semiduro", "units": ["kilo", "libra"], "price": {"kilo": 20000, "libra": 9000}},
    {"name": "Limones", "units": ["unidades"], "price": 500},
    {"name": "Chorizos", "units": ["unidades"], "price": 3000},
    {"name": "Mora", "units": ["kilos"], "price": 8000},
]


def default_catalog() -> ProductCatalog:
    return build_catalog(DEFAULT_PRODUCTS)


def load_catalog(path: str) -> ProductCatalog:
    """Lee un JSON con la misma forma que DEFAULT_PRODUCTS."""
    if not path:
        return default_catalog()
    try:
        with open(path, encoding="utf-8") as f:
            entries = json.load(f)
    except FileNotFoundError:
        logger.warning("Catalogo %s no encontrado, usando precios por defecto", path)
        return default_catalog()
    return build_catalog(entries)
