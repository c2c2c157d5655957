from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from order_ledger.auth_local import Principal, Role
from order_ledger.core_settings import get_settings
from order_ledger.domain.errors import (
    OrderLedgerError,
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    AuthorizationError,
    InvalidStateError,
    PartialCommitError,
)
from order_ledger.domain.models import (
    Address,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    Product,
    RefundProcess,
    utcnow,
)
from order_ledger.infrastructure.accounts import AccountStore
from order_ledger.infrastructure.catalog import CatalogStore
from order_ledger.infrastructure.coupons import CouponStore
from .pricing import CartPricer, PricedDraft
from .schemas import AddressIn, OrderCreate, OrderStatusUpdate, RefundUpdate
from .state_machine import ensure_cancellable, ensure_refund_transition, ensure_transition
from shared.core import get_logger
from typing import List, Optional
import math

logger = get_logger(__name__)

class OrderService:
    def __init__(self, db: Session, settings=None):
        self.db = db
        self.settings = settings or get_settings()
        self.catalog = CatalogStore(db)
        self.coupons = CouponStore(db)
        self.accounts = AccountStore(db)
        self.pricer = CartPricer(self.catalog, self.coupons)

    # Checkout

    def resolve_cart(self, customer_id: int, lines, coupon_code: Optional[str] = None) -> PricedDraft:
        return self.pricer.resolve_cart(customer_id, lines, coupon_code)

    def place_order(self, customer_id: int, data: OrderCreate) -> Order:
        try:
            draft = self.resolve_cart(customer_id, data.items, data.coupon_code)
        except OrderLedgerError:
            # Release the read transaction opened by the catalog lookup
            self.db.rollback()
            raise
        return self.commit_order(customer_id, draft, data.payment_method, data.address)

    def commit_order(
        self,
        customer_id: int,
        draft: PricedDraft,
        payment_method=PaymentMethod.COD,
        address: Optional[AddressIn] = None,
    ) -> Order:
        """Apply the draft: decrement stock per line, insert the order, bump the tally.

        Runs as one transaction. Any failure rolls back every line already
        decremented, so a checkout either lands completely or not at all.
        """
        applied = []
        try:
            for line in draft.lines:
                if not self.catalog.apply_delta(line.product_id, -line.quantity, line.quantity):
                    available = self.db.query(Product.stock).filter(Product.id == line.product_id).scalar()
                    raise InsufficientStockError(line.product_id, available or 0, line.title)
                applied.append(line)

            order = Order(
                customer_id=customer_id,
                coupon_id=draft.coupon_id,
                total_price=draft.subtotal,
                discount=draft.discount,
                final_price=draft.final_price,
                payment_method=PaymentMethod(payment_method).value,
                address=self._to_address(address),
                status=OrderStatus.PENDING.value,
                items=[
                    OrderItem(
                        product_id=line.product_id,
                        seller_id=line.seller_id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                    )
                    for line in draft.lines
                ],
            )
            self.db.add(order)

            if not self.accounts.increment_order_count(customer_id):
                raise NotFoundError(f"Customer not found: {customer_id}")

            self.db.flush()
            self.db.commit()
        except OrderLedgerError as e:
            self.db.rollback()
            logger.warning(
                f"Checkout rejected: {e.message}",
                extra={'extra_fields': {'customer_id': customer_id, 'lines_rolled_back': len(applied)}}
            )
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            if not applied:
                raise
            logger.error(
                "Checkout failed after stock mutation; rolled back",
                exc_info=True,
                extra={'extra_fields': {'customer_id': customer_id, 'lines_rolled_back': len(applied)}}
            )
            raise PartialCommitError("Order could not be saved; stock changes were rolled back") from e

        self.db.refresh(order)
        logger.info(
            f"Order {order.id} created",
            extra={'extra_fields': {
                'order_id': order.id,
                'customer_id': customer_id,
                'final_price': str(order.final_price),
                'lines': len(draft.lines),
            }}
        )
        return order

    def _to_address(self, address: Optional[AddressIn]) -> Address:
        if address is None:
            raise ValidationError("Delivery address is required")
        return Address(
            house=address.house,
            street=address.street,
            landmark=address.landmark,
            pincode=address.pincode,
            city=address.city,
            state=address.state,
            country=address.country,
        )

    # State machine

    def cancel_order(self, order_id: int, customer_id: int) -> Order:
        order = self.get_or_404(order_id)
        if order.customer_id != customer_id:
            raise AuthorizationError("Not authorized to cancel this order")
        ensure_cancellable(order.status)

        values = {"status": OrderStatus.CANCELLED.value}
        if order.payment_method != PaymentMethod.COD.value:
            values.update(
                refund_process=RefundProcess.PROCESSING.value,
                refund_time=utcnow(),
                refund_message=self.settings.REFUND_NOTICE,
            )

        try:
            # Only one cancellation may win the pending -> cancelled flip
            flipped = self.db.execute(
                update(Order)
                .where(Order.id == order.id, Order.status == OrderStatus.PENDING.value)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if flipped.rowcount != 1:
                self.db.rollback()
                self.db.refresh(order)
                raise InvalidStateError(f"Cannot cancel order with status: {order.status}")

            for item in order.items:
                if not self.catalog.apply_delta(item.product_id, item.quantity, -item.quantity):
                    raise PartialCommitError(
                        f"Stock for product {item.product_id} could not be restored; cancellation rolled back"
                    )
            self.db.commit()
        except PartialCommitError:
            self.db.rollback()
            logger.error(
                f"Cancellation of order {order_id} failed",
                extra={'extra_fields': {'order_id': order_id}}
            )
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Cancellation of order {order_id} failed", exc_info=True)
            raise PartialCommitError("Order could not be cancelled; changes were rolled back") from e

        self.db.refresh(order)
        logger.info(
            f"Order {order.id} cancelled",
            extra={'extra_fields': {'order_id': order.id, 'refund_process': order.refund_process}}
        )
        return order

    def update_status(self, order_id: int, data: OrderStatusUpdate, actor: Principal) -> Order:
        order = self.get_or_404(order_id)
        if actor.role == Role.SELLER and not self._sells_in(order, actor.user_id):
            raise AuthorizationError("Not authorized to update this order")

        if data.status is not None:
            ensure_transition(order.status, data.status)
            order.status = data.status.value
        if data.refund_process is not None:
            order.refund_process = data.refund_process.value
        if data.refund_message is not None:
            order.refund_message = data.refund_message

        self.db.commit()
        self.db.refresh(order)
        logger.info(
            f"Order {order.id} updated",
            extra={'extra_fields': {'order_id': order.id, 'status': order.status, 'actor': actor.user_id}}
        )
        return order

    def update_refund(self, order_id: int, data: RefundUpdate) -> Order:
        order = self.get_or_404(order_id)
        if data.status is not None:
            ensure_refund_transition(order.status, data.status)

        if data.refund_process is not None:
            order.refund_process = data.refund_process.value
            if data.refund_process == RefundProcess.INITIATED and order.refund_time is None:
                order.refund_time = utcnow()
        if data.refund_message is not None:
            order.refund_message = data.refund_message
        if data.status is not None:
            order.status = data.status.value

        self.db.commit()
        self.db.refresh(order)
        logger.info(
            f"Refund for order {order.id} updated",
            extra={'extra_fields': {'order_id': order.id, 'refund_process': order.refund_process}}
        )
        return order

    # Queries

    def get(self, order_id: int) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def get_or_404(self, order_id: int) -> Order:
        order = self.get(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def get_for(self, order_id: int, actor: Principal) -> Order:
        order = self.get_or_404(order_id)
        if actor.is_admin or order.customer_id == actor.user_id:
            return order
        if actor.role == Role.SELLER and self._sells_in(order, actor.user_id):
            return order
        raise AuthorizationError("Not authorized to view this order")

    def list(self, page: int = 1, limit: Optional[int] = None):
        return self._paginate(self.db.query(Order), page, limit)

    def list_for_customer(self, customer_id: int) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    def list_for_seller(self, seller_id: int, page: int = 1, limit: Optional[int] = None):
        query = self.db.query(Order).filter(Order.items.any(OrderItem.seller_id == seller_id))
        return self._paginate(query, page, limit)

    def delete(self, order_id: int) -> None:
        """Hard delete; bypasses the state machine and leaves stock untouched."""
        order = self.get_or_404(order_id)
        self.db.delete(order)
        self.db.commit()
        logger.warning(f"Order {order_id} deleted", extra={'extra_fields': {'order_id': order_id}})

    def _paginate(self, query, page: int, limit: Optional[int]) -> dict:
        page = max(page, 1)
        limit = min(limit or self.settings.ORDERS_PAGE_LIMIT, self.settings.ORDERS_PAGE_LIMIT_MAX)
        total = query.count()
        orders = (
            query.order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "orders": orders,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    @staticmethod
    def _sells_in(order: Order, seller_id: int) -> bool:
        return any(item.seller_id == seller_id for item in order.items)
