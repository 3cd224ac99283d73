from __future__ import annotations

from fastapi import APIRouter, Depends

from app.register.core.money import money_or_none, to_money
from app.register.db.session import get_db
from app.register.repos.catalog import CatalogRepository
from app.register.schemas.catalog import CatalogProduct, CatalogResponse, CatalogTicketType
from app.register.services.cart import product_unit_price, ticket_ceiling

router = APIRouter()


def _product_response(product) -> CatalogProduct:
    return CatalogProduct(
        id=str(product.id),
        name=product.name,
        price=to_money(product.price),
        sale_price=money_or_none(product.sale_price),
        is_on_sale=bool(product.is_on_sale),
        unit_price=product_unit_price(product),
        stock=product.stock,
    )


def _ticket_type_response(ticket_type) -> CatalogTicketType:
    event = ticket_type.event
    return CatalogTicketType(
        id=str(ticket_type.id),
        event_id=str(ticket_type.event_id),
        event_name=event.name,
        event_date=event.event_date,
        event_time=event.event_time,
        name=ticket_type.name,
        price=to_money(ticket_type.price),
        quantity_available=ticket_type.quantity_available,
        quantity_sold=ticket_type.quantity_sold,
        available=ticket_ceiling(ticket_type),
    )


@router.get("/register/catalog", response_model=CatalogResponse)
def get_catalog(db=Depends(get_db)):
    repo = CatalogRepository(db)
    return CatalogResponse(
        products=[_product_response(row) for row in repo.list_active_products()],
        ticket_types=[_ticket_type_response(row) for row in repo.list_active_ticket_types()],
    )
