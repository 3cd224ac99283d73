from __future__ import annotations

from app.register.core.error_catalog import AppError, ErrorCatalog
from app.register.repos.catalog import CatalogRepository
from app.register.services.cart import PRODUCT, TICKET, Cart
from app.register.services.coupons import CouponEvaluator


def load_cart(db, lines, discount=None, *, customer_id: str | None = None, now=None) -> Cart:
    catalog = CatalogRepository(db)
    cart = Cart()
    for line in lines:
        if line.kind == PRODUCT:
            product = catalog.get_active_product(line.item_id)
            if product is None:
                raise AppError(
                    ErrorCatalog.NOT_FOUND,
                    details={"message": "product not found", "item_id": str(line.item_id)},
                )
            cart.add_product(product, line.quantity)
        elif line.kind == TICKET:
            ticket_type = catalog.get_active_ticket_type(line.item_id)
            if ticket_type is None:
                raise AppError(
                    ErrorCatalog.NOT_FOUND,
                    details={"message": "ticket type not found", "item_id": str(line.item_id)},
                )
            cart.add_ticket(ticket_type, line.quantity)
        else:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "unsupported line kind"})

    if discount is None or discount.kind == "NONE":
        return cart
    if discount.kind == "MANUAL_PERCENT":
        cart.select_manual_percent(discount.value)
    elif discount.kind == "MANUAL_FIXED":
        cart.select_manual_fixed(discount.value)
    elif discount.kind == "COUPON":
        evaluation = CouponEvaluator(db).evaluate(
            discount.coupon_code,
            cart.subtotal,
            customer_id=customer_id,
            now=now,
        )
        if not evaluation.valid:
            raise AppError(
                ErrorCatalog.COUPON_REJECTED,
                details={"reason": evaluation.rejection.value, "code": discount.coupon_code},
            )
        cart.apply_coupon(evaluation.coupon)
    return cart
