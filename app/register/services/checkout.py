from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.core.logging import log_json
from app.register.core.metrics import metrics
from app.register.core.money import to_money
from app.register.db.models import RegisterTransaction, RegisterTransactionLine
from app.register.repos.catalog import CatalogRepository
from app.register.repos.coupons import CouponRepository
from app.register.repos.register_transactions import RegisterTransactionRepository
from app.register.services.cart import (
    CASH,
    PAYMENT_METHODS,
    Cart,
    CartPricing,
    ProductLine,
    TicketLine,
    line_total,
    price_cart,
)
from app.register.services.discounts import CouponSelection, discount_snapshot
from app.register.services.register_sessions import RegisterSessionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    transaction: RegisterTransaction
    pricing: CartPricing


class CheckoutService:
    """Commits a priced cart and its counter updates as one database transaction."""

    def __init__(self, db):
        self.db = db
        self.sessions = RegisterSessionService(db)
        self.catalog = CatalogRepository(db)
        self.coupons = CouponRepository(db)
        self.transactions = RegisterTransactionRepository(db)

    def validate(self, cart: Cart, payment_method: str | None, amount_paid=None) -> CartPricing:
        if cart.is_empty:
            raise AppError(ErrorCatalog.CART_EMPTY)
        if not payment_method:
            raise AppError(ErrorCatalog.PAYMENT_METHOD_REQUIRED)
        if payment_method not in PAYMENT_METHODS:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "unsupported payment method", "payment_method": payment_method},
            )
        pricing = price_cart(cart, payment_method, amount_paid)
        if payment_method == CASH:
            if pricing.amount_paid is None:
                pricing = price_cart(cart, payment_method, pricing.total)
            elif pricing.amount_paid < pricing.total:
                raise AppError(
                    ErrorCatalog.INSUFFICIENT_CASH_TENDERED,
                    details={"total": str(pricing.total), "amount_paid": str(pricing.amount_paid)},
                )
        return pricing

    def commit(
        self,
        cart: Cart,
        *,
        operator_id: str,
        payment_method: str | None,
        amount_paid=None,
        customer_id: str | None = None,
    ) -> CheckoutResult:
        session = self.sessions.require_open_session(for_update=True)
        pricing = self.validate(cart, payment_method, amount_paid)
        selection = cart.selection
        snapshot = discount_snapshot(selection, pricing.discount_amount)
        coupon = selection.coupon if isinstance(selection, CouponSelection) else None

        transaction = RegisterTransaction(
            session_id=session.id,
            operator_id=operator_id,
            customer_id=customer_id,
            subtotal=pricing.subtotal,
            discount_type=snapshot.discount_type,
            discount_value=snapshot.discount_value,
            discount_amount=snapshot.discount_amount,
            coupon_id=coupon.id if coupon else None,
            coupon_code=coupon.code if coupon else None,
            total=pricing.total,
            payment_method=payment_method,
            amount_paid=pricing.amount_paid,
            change_amount=pricing.change_amount,
            created_at=datetime.utcnow(),
        )

        try:
            self.db.add(transaction)
            self.db.flush()
            for position, line in enumerate(cart.lines, start=1):
                self.db.add(
                    RegisterTransactionLine(
                        transaction_id=transaction.id,
                        position=position,
                        kind=line.kind,
                        item_id=line.item_id,
                        event_id=line.event_id,
                        name=line.name,
                        unit_price=to_money(line.unit_price),
                        quantity=line.quantity,
                        line_total=line_total(line),
                    )
                )
            self._apply_inventory(cart)
            if coupon is not None:
                self._redeem_coupon(coupon, transaction, customer_id)
            self.db.commit()
        except AppError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            metrics.increment_integrity_alert("checkout_rollback")
            log_json(
                logger,
                {
                    "event": "checkout_rolled_back",
                    "alert": "data_integrity",
                    "session_id": str(session.id),
                    "error_class": exc.__class__.__name__,
                    "error": str(exc),
                },
                level=logging.ERROR,
            )
            raise AppError(ErrorCatalog.CHECKOUT_FAILED, details={"type": exc.__class__.__name__}) from exc

        metrics.increment_sale(payment_method)
        log_json(
            logger,
            {
                "event": "register_sale_committed",
                "transaction_id": str(transaction.id),
                "session_id": str(session.id),
                "payment_method": payment_method,
                "subtotal": str(pricing.subtotal),
                "discount_amount": str(pricing.discount_amount),
                "total": str(pricing.total),
                "coupon_code": coupon.code if coupon else None,
            },
        )
        cart.clear()
        return CheckoutResult(transaction=self.transactions.get_by_id(transaction.id), pricing=pricing)

    def _apply_inventory(self, cart: Cart) -> None:
        for line in cart.lines:
            if isinstance(line, ProductLine):
                self.catalog.decrement_stock(line.product_id, line.quantity)
            elif isinstance(line, TicketLine):
                if self.catalog.increment_ticket_sold(line.ticket_type_id, line.quantity) == 0:
                    raise AppError(
                        ErrorCatalog.TICKET_UNAVAILABLE,
                        details={"ticket_type_id": str(line.ticket_type_id), "requested": line.quantity},
                    )

    def _redeem_coupon(self, coupon, transaction: RegisterTransaction, customer_id: str | None) -> None:
        if self.coupons.increment_uses(coupon.id) == 0:
            raise AppError(ErrorCatalog.COUPON_USES_EXHAUSTED, details={"code": coupon.code})
        self.coupons.record_use(coupon_id=coupon.id, transaction_id=transaction.id, customer_id=customer_id)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise AppError(
                ErrorCatalog.COUPON_REJECTED,
                details={"reason": "ALREADY_USED", "code": coupon.code},
            ) from exc
