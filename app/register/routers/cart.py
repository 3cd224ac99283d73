from __future__ import annotations

from fastapi import APIRouter, Depends

from app.register.db.session import get_db
from app.register.schemas.register_transactions import CartQuoteLineResponse, CartQuoteResponse, CartRequest
from app.register.services.cart import line_total, price_cart
from app.register.services.cart_loader import load_cart
from app.register.services.discounts import CouponSelection

router = APIRouter()


@router.post("/register/cart/quote", response_model=CartQuoteResponse)
def quote_cart(payload: CartRequest, db=Depends(get_db)):
    cart = load_cart(db, payload.lines, payload.discount, customer_id=payload.customer_id)
    pricing = price_cart(cart, payload.payment_method, payload.amount_paid)
    selection = cart.selection
    return CartQuoteResponse(
        lines=[
            CartQuoteLineResponse(
                kind=line.kind,
                item_id=str(line.item_id),
                event_id=str(line.event_id) if line.event_id else None,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_total=line_total(line),
            )
            for line in cart.lines
        ],
        discount_kind=selection.kind.value,
        coupon_code=selection.coupon.code if isinstance(selection, CouponSelection) else None,
        subtotal=pricing.subtotal,
        discount_amount=pricing.discount_amount,
        total=pricing.total,
        payment_method=pricing.payment_method,
        amount_paid=pricing.amount_paid,
        change_amount=pricing.change_amount,
    )
