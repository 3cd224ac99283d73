from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel


class CatalogProduct(BaseModel):
    id: str
    name: str
    price: Decimal
    sale_price: Decimal | None
    is_on_sale: bool
    unit_price: Decimal
    stock: int | None


class CatalogTicketType(BaseModel):
    id: str
    event_id: str
    event_name: str
    event_date: date
    event_time: str | None
    name: str
    price: Decimal
    quantity_available: int
    quantity_sold: int
    available: int


class CatalogResponse(BaseModel):
    products: list[CatalogProduct]
    ticket_types: list[CatalogTicketType]
