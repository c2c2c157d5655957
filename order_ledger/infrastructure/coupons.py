from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from order_ledger.domain.models import Coupon, utcnow

class CouponStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_name(self, name: str) -> Optional[Coupon]:
        return self.db.query(Coupon).filter(Coupon.name == name.strip()).first()

    def find_active_by_name(self, name: str, now: Optional[datetime] = None) -> Optional[Coupon]:
        """Return the coupon only if it is active and not expired."""
        coupon = self.find_by_name(name)
        if coupon is None or not coupon.is_valid_at(now or utcnow()):
            return None
        return coupon
