from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, composite
from sqlalchemy import String, ForeignKey, Numeric, DateTime, Integer, Boolean, CheckConstraint, Index
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column in this service stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

class OrderStatus(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"
    DELIVERED = "delivered"
    REFUND = "refund"
    REFUNDED = "refunded"

class RefundProcess(str, Enum):
    PROCESSING = "processing"
    INITIATED = "initiated"
    CANCELLED = "cancelled"
    DONE = "done"

class PaymentMethod(str, Enum):
    COD = "COD"
    UPI = "UPI"
    CREDIT_CARD = "Credit-Card"
    DEBIT_CARD = "Debit-Card"
    EMI = "EMI"

class Base(DeclarativeBase):
    pass

@dataclass
class Address:
    house: str
    street: Optional[str]
    landmark: Optional[str]
    pincode: int
    city: str
    state: str
    country: str

class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        CheckConstraint("orders_count >= 0", name="ck_customers_orders_count_non_negative"),
    )
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    orders_count: Mapped[int] = mapped_column(Integer, default=0)

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("sold >= 0", name="ck_products_sold_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    sku: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(200))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    stock: Mapped[int] = mapped_column(Integer, default=0)
    sold: Mapped[int] = mapped_column(Integer, default=0)
    # Seller is a user id owned by the accounts service
    seller_id: Mapped[int] = mapped_column(Integer, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

class Coupon(Base):
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("discount >= 0 AND discount <= 100", name="ck_coupons_discount_percent"),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    # Percentage, 0-100
    discount: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    def is_valid_at(self, moment: datetime) -> bool:
        if not self.is_active:
            return False
        return self.expiry_date is None or self.expiry_date > moment

class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_orders_total_price_non_negative"),
        CheckConstraint("discount >= 0 AND discount <= total_price", name="ck_orders_discount_bounds"),
        CheckConstraint("final_price >= 0", name="ck_orders_final_price_non_negative"),
        Index("idx_orders_customer_created", "customer_id", "created_at"),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id", ondelete="RESTRICT"))
    coupon_id: Mapped[Optional[int]] = mapped_column(ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    final_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    payment_method: Mapped[str] = mapped_column(String(20), default=PaymentMethod.COD.value)
    # Delivery address, embedded
    address: Mapped[Address] = composite(
        mapped_column("address_house", String(200), nullable=False),
        mapped_column("address_street", String(200), nullable=True),
        mapped_column("address_landmark", String(200), nullable=True),
        mapped_column("address_pincode", Integer, nullable=False),
        mapped_column("address_city", String(100), nullable=False),
        mapped_column("address_state", String(100), nullable=False),
        mapped_column("address_country", String(100), nullable=False),
    )
    status: Mapped[str] = mapped_column(String(30), default=OrderStatus.PENDING.value, index=True)
    refund_process: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    refund_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    refund_message: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )

class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_non_negative"),
    )
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"))
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), index=True)
    seller_id: Mapped[int] = mapped_column(Integer, index=True)
    quantity: Mapped[int]
    # Price snapshot captured at order creation time
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    order: Mapped[Order] = relationship("Order", back_populates="items")
