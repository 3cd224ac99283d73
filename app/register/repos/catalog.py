from __future__ import annotations

from sqlalchemy import case, select, update
from sqlalchemy.orm import selectinload

from app.register.db.models import Event, Product, TicketType


class CatalogRepository:
    """Read access to sellable items plus the guarded counter updates used at checkout."""

    def __init__(self, db):
        self.db = db

    def list_active_products(self) -> list[Product]:
        query = select(Product).where(Product.active.is_(True)).order_by(Product.name)
        return self.db.execute(query).scalars().all()

    def list_active_ticket_types(self) -> list[TicketType]:
        query = (
            select(TicketType)
            .join(Event, TicketType.event_id == Event.id)
            .where(TicketType.is_active.is_(True), Event.is_active.is_(True))
            .options(selectinload(TicketType.event))
            .order_by(Event.event_date, TicketType.name)
        )
        return self.db.execute(query).scalars().all()

    def get_active_product(self, product_id: str) -> Product | None:
        query = select(Product).where(Product.id == product_id, Product.active.is_(True))
        return self.db.execute(query).scalars().first()

    def get_active_ticket_type(self, ticket_type_id: str) -> TicketType | None:
        query = (
            select(TicketType)
            .join(Event, TicketType.event_id == Event.id)
            .where(TicketType.id == ticket_type_id, TicketType.is_active.is_(True), Event.is_active.is_(True))
            .options(selectinload(TicketType.event))
        )
        return self.db.execute(query).scalars().first()

    def decrement_stock(self, product_id, quantity: int) -> int:
        # stock floors at zero; NULL stock means the product is not stock-tracked
        remaining = Product.stock - quantity
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock.is_not(None))
            .values(stock=case((remaining < 0, 0), else_=remaining))
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def increment_ticket_sold(self, ticket_type_id, quantity: int) -> int:
        stmt = (
            update(TicketType)
            .where(
                TicketType.id == ticket_type_id,
                TicketType.quantity_sold + quantity <= TicketType.quantity_available,
            )
            .values(quantity_sold=TicketType.quantity_sold + quantity)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount
