from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from order_ledger.auth_local import Principal, Role
from order_ledger.domain.errors import AuthorizationError
from order_ledger.infrastructure.db import get_db
from order_ledger.application.service import OrderService
from order_ledger.application.schemas import (
    OrderCreate,
    OrderCreated,
    OrderPage,
    OrderRead,
    OrderStatusUpdate,
    RefundUpdate,
)
from .deps import get_current_principal, require_roles

router = APIRouter(prefix="/orders", tags=["orders"])

admin_only = require_roles(Role.ADMIN)
seller_or_admin = require_roles(Role.SELLER, Role.ADMIN)

@router.post("/", response_model=OrderCreated, status_code=201)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Validate the cart, apply the coupon, decrement stock and record the order."""
    order = OrderService(db).place_order(principal.user_id, payload)
    return {"message": "Order created successfully", "order": order}

@router.get("/", response_model=OrderPage)
def list_orders(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, description="Orders per page, capped at 100"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(admin_only),
):
    return OrderService(db).list(page, limit)

@router.get("/my", response_model=list[OrderRead])
def list_my_orders(db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    return OrderService(db).list_for_customer(principal.user_id)

@router.get("/user/{customer_id}", response_model=list[OrderRead])
def list_orders_by_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    if not principal.is_admin and principal.user_id != customer_id:
        raise AuthorizationError("Not authorized to view these orders")
    return OrderService(db).list_for_customer(customer_id)

@router.get("/seller", response_model=OrderPage)
def list_seller_orders(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_roles(Role.SELLER)),
):
    """Orders containing at least one item sold by the caller."""
    return OrderService(db).list_for_seller(principal.user_id, page, limit)

@router.get("/seller/{seller_id}", response_model=OrderPage)
def list_orders_by_seller(
    seller_id: int,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(admin_only),
):
    return OrderService(db).list_for_seller(seller_id, page, limit)

@router.put("/status/{order_id}", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(seller_or_admin),
):
    return OrderService(db).update_status(order_id, payload, principal)

@router.put("/cancel/{order_id}", response_model=OrderRead)
def cancel_order(order_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    """Cancel a pending order and put its stock back."""
    return OrderService(db).cancel_order(order_id, principal.user_id)

@router.put("/refund/{order_id}", response_model=OrderRead)
def update_refund(
    order_id: int,
    payload: RefundUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(admin_only),
):
    return OrderService(db).update_refund(order_id, payload)

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    return OrderService(db).get_for(order_id, principal)

@router.delete("/{order_id}", status_code=204)
def delete_order(order_id: int, db: Session = Depends(get_db), principal: Principal = Depends(admin_only)):
    """Hard delete. Does not restore stock."""
    OrderService(db).delete(order_id)
    return None
