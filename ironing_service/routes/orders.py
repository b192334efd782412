"""
Order Routes for the Ironing Service
====================================

Customer and staff endpoints for orders.

Endpoints:
----------
- POST /orders: Place an order (customer)
- GET /orders/user: List the caller's orders
- GET /orders/{id}: Order with items and audit log
- PUT /orders/{id}: Edit an order before pickup (owner)
- POST /orders/{id}/cancel: Cancel with a reason (owner)
- POST /orders/{id}/otp/verify: Confirm delivery with the texted code (owner)
- POST /orders/{id}/status: Staff status change through the state machine
- GET /orders/{id}/transitions: Statuses the order may move to next

Authentication:
---------------
All endpoints require a bearer token. Customers only ever see their own
orders; staff roles see all of them.

Errors:
-------
Business errors (OrderServiceError, InvalidTransitionError, ...) are raised
by the service layer and turned into JSON responses by the handlers
registered in main.py, so handlers here stay free of try/except.

Usage:
------
    POST /api/orders
    {"address_id": 1, "timeslot_id": 3, "items": [{"service_id": 1, "quantity": 4}]}

    POST /api/orders/12/status
    {"status": "AT_CENTER"}
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..auth import get_current_user, require_roles
from ..db import get_db
from ..models import Role, User
from ..order_state_machine import allowed_transitions, is_exception_state, is_terminal
from ..rate_limit import otp_limit
from ..schemas.orders import (
    AllowedTransitionsOut,
    CancelRequest,
    CancelResponse,
    OrderActionResponse,
    OrderCreate,
    OrderDetailOut,
    OrderListResponse,
    OrderOut,
    OrderUpdate,
    OtpVerifyRequest,
    StatusUpdateRequest,
)
from ..services import fulfillment, orders, trips
from ..services.orders import ValidationError


logger = logging.getLogger(__name__)

orders_router = APIRouter(prefix="/orders", tags=["Orders"])


# =============================================================================
# Customer Endpoints
# =============================================================================

@orders_router.post("", response_model=OrderDetailOut, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    user: User = Depends(require_roles(Role.USER)),
    db: Session = Depends(get_db),
) -> OrderDetailOut:
    """
    Place an order paid from the wallet.

    Prices come from the current service catalog, not the request. The
    wallet is debited and a timeslot seat taken in the same transaction that
    inserts the order and its first audit row.
    """
    order = orders.create_order(
        db,
        user,
        address_id=payload.address_id,
        timeslot_id=payload.timeslot_id,
        items=[item.model_dump() for item in payload.items],
        delivery_type=payload.delivery_type,
        center_id=payload.center_id,
    )
    return OrderDetailOut.model_validate(order)


@orders_router.get("/user", response_model=OrderListResponse)
def list_my_orders(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrderListResponse:
    """Return the caller's orders, newest first."""
    return OrderListResponse(
        orders=[OrderDetailOut.model_validate(o) for o in orders.list_user_orders(db, user)]
    )


@orders_router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrderDetailOut:
    order = orders.get_order_for_user(db, user, order_id)
    return OrderDetailOut.model_validate(order)


@orders_router.put("/{order_id}", response_model=OrderActionResponse)
def update_order(
    order_id: int,
    payload: OrderUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrderActionResponse:
    """Edit address, timeslot, delivery type, or items while the order is PLACED."""
    order = orders.update_order(
        db,
        user,
        order_id,
        address_id=payload.address_id,
        timeslot_id=payload.timeslot_id,
        delivery_type=payload.delivery_type,
        items=[item.model_dump() for item in payload.items] if payload.items is not None else None,
    )
    return OrderActionResponse(message="Order updated successfully", order=OrderOut.model_validate(order))


@orders_router.post("/{order_id}/cancel", response_model=CancelResponse)
def cancel_order(
    order_id: int,
    payload: CancelRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CancelResponse:
    """Cancel before pickup; the full total goes back to the wallet."""
    order = orders.cancel_order(db, user, order_id, payload.reason)
    trips.complete_trip_if_done(db, order)
    return CancelResponse(
        message="Order cancelled successfully",
        order=OrderOut.model_validate(order),
        refunded_amount_cents=order.total_cents,
    )


@orders_router.post("/{order_id}/otp/verify", response_model=OrderActionResponse)
@otp_limit
def verify_delivery_otp(
    request: Request,
    order_id: int,
    payload: OtpVerifyRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrderActionResponse:
    """Customer confirms they received the garments."""
    order = fulfillment.verify_delivery(db, user, order_id, payload.code)
    trips.complete_trip_if_done(db, order)
    return OrderActionResponse(message="Delivery confirmed", order=OrderOut.model_validate(order))


# =============================================================================
# Staff Endpoints
# =============================================================================

@orders_router.post("/{order_id}/status", response_model=OrderActionResponse)
def update_order_status(
    order_id: int,
    payload: StatusUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrderActionResponse:
    """
    Move an order to a new status.

    The state machine decides whether the move is legal; an illegal one is a
    400 listing the allowed targets. Afterwards the order's trips are checked
    for completion.
    """
    if not payload.status:
        raise ValidationError("Status is required")

    order = orders.update_status(db, user, order_id, payload.status)
    trips.complete_trip_if_done(db, order)
    return OrderActionResponse(message="Order status updated", order=OrderOut.model_validate(order))


@orders_router.get("/{order_id}/transitions", response_model=AllowedTransitionsOut)
def get_allowed_transitions(
    order_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AllowedTransitionsOut:
    order = orders.get_order_for_user(db, user, order_id)
    return AllowedTransitionsOut(
        order_id=order.id,
        status=order.status,
        allowed_transitions=allowed_transitions(order.status),
        is_exception_state=is_exception_state(order.status),
        is_terminal=is_terminal(order.status),
    )
