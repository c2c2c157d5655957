from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from order_ledger.domain.models import OrderStatus, RefundProcess, PaymentMethod

class CartLine(BaseModel):
    product_id: int
    quantity: int

class AddressIn(BaseModel):
    house: str
    street: Optional[str] = None
    landmark: Optional[str] = None
    pincode: int
    city: str
    state: str
    country: str = "India"

class OrderCreate(BaseModel):
    items: list[CartLine]
    coupon_code: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.COD
    address: AddressIn

class OrderStatusUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    refund_process: Optional[RefundProcess] = None
    refund_message: Optional[str] = None

class RefundUpdate(BaseModel):
    refund_process: Optional[RefundProcess] = None
    refund_message: Optional[str] = None
    status: Optional[OrderStatus] = None

class AddressRead(BaseModel):
    house: str
    street: Optional[str] = None
    landmark: Optional[str] = None
    pincode: int
    city: str
    state: str
    country: str
    class Config:
        from_attributes = True

class OrderItemRead(BaseModel):
    product_id: int
    seller_id: int
    quantity: int
    unit_price: float
    class Config:
        from_attributes = True

class OrderRead(BaseModel):
    id: int
    customer_id: int
    coupon_id: Optional[int] = None
    items: list[OrderItemRead]
    total_price: float
    discount: float
    final_price: float
    payment_method: str
    address: AddressRead
    status: str
    refund_process: Optional[str] = None
    refund_time: Optional[datetime] = None
    refund_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True

class OrderCreated(BaseModel):
    message: str
    order: OrderRead

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

class OrderPage(BaseModel):
    orders: list[OrderRead]
    pagination: Pagination
