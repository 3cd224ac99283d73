from __future__ import annotations

from sqlalchemy import or_, select, update

from app.register.db.models import Coupon, CouponUse


class CouponRepository:
    def __init__(self, db):
        self.db = db

    def get_active_by_code(self, code: str) -> Coupon | None:
        query = select(Coupon).where(Coupon.code == code, Coupon.is_active.is_(True))
        return self.db.execute(query).scalars().first()

    def has_customer_use(self, coupon_id, customer_id: str) -> bool:
        query = select(CouponUse.id).where(CouponUse.coupon_id == coupon_id, CouponUse.customer_id == customer_id)
        return self.db.execute(query.limit(1)).first() is not None

    def increment_uses(self, coupon_id) -> int:
        stmt = (
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                or_(Coupon.max_uses.is_(None), Coupon.current_uses < Coupon.max_uses),
            )
            .values(current_uses=Coupon.current_uses + 1)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def record_use(self, *, coupon_id, transaction_id, customer_id: str | None) -> CouponUse:
        use = CouponUse(coupon_id=coupon_id, transaction_id=transaction_id, customer_id=customer_id)
        self.db.add(use)
        return use
