"""Cart resolution and pricing.

Turns a submitted cart into a priced draft. Nothing here writes to the
database: the draft carries the catalog prices read at resolution time, and
those prices become the order's snapshot when it is committed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from order_ledger.domain.errors import (
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    CouponInvalidError,
)
from order_ledger.domain.models import utcnow
from order_ledger.infrastructure.catalog import CatalogStore
from order_ledger.infrastructure.coupons import CouponStore
from shared.core import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass
class DraftLine:
    product_id: int
    seller_id: int
    title: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class PricedDraft:
    lines: list[DraftLine] = field(default_factory=list)
    subtotal: Decimal = ZERO
    discount: Decimal = ZERO
    final_price: Decimal = ZERO
    coupon_id: Optional[int] = None


def compute_discount(subtotal: Decimal, percent) -> Decimal:
    """Percentage discount rounded to the cent, never more than the subtotal."""
    discount = (subtotal * Decimal(str(percent)) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    return max(ZERO, min(discount, subtotal))


def compute_final_price(subtotal: Decimal, discount: Decimal) -> Decimal:
    return max(ZERO, subtotal - discount)


def merge_lines(lines: Iterable) -> dict[int, int]:
    """Collapse repeated product ids into one quantity, keeping first-seen order."""
    merged: dict[int, int] = {}
    for line in lines:
        if line.quantity < 1:
            raise ValidationError(f"Quantity must be at least 1 for product {line.product_id}")
        merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
    return merged


class CartPricer:
    def __init__(self, catalog: CatalogStore, coupons: CouponStore):
        self.catalog = catalog
        self.coupons = coupons

    def resolve_cart(
        self,
        customer_id: int,
        lines,
        coupon_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PricedDraft:
        if not lines:
            raise ValidationError("Order must contain at least one item")
        requested = merge_lines(lines)

        products = {p.id: p for p in self.catalog.find_by_ids(requested.keys())}
        if len(products) != len(requested):
            missing = sorted(set(requested) - set(products))
            logger.warning(
                "Cart references unknown products",
                extra={'extra_fields': {'customer_id': customer_id, 'missing': missing}}
            )
            raise NotFoundError("One or more products not found")

        draft = PricedDraft()
        for product_id, quantity in requested.items():
            product = products[product_id]
            if quantity > product.stock:
                raise InsufficientStockError(product.id, product.stock, product.title)
            draft.lines.append(DraftLine(
                product_id=product.id,
                seller_id=product.seller_id,
                title=product.title,
                unit_price=Decimal(product.price).quantize(CENT),
                quantity=quantity,
            ))

        draft.subtotal = sum((line.line_total for line in draft.lines), ZERO)

        if coupon_code:
            coupon = self.coupons.find_by_name(coupon_code)
            if coupon is None or not coupon.is_active:
                raise CouponInvalidError("Invalid or inactive coupon")
            if not coupon.is_valid_at(now or utcnow()):
                raise CouponInvalidError("Coupon has expired")
            draft.coupon_id = coupon.id
            draft.discount = compute_discount(draft.subtotal, coupon.discount)

        draft.final_price = compute_final_price(draft.subtotal, draft.discount)
        return draft
