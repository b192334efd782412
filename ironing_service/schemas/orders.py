"""
Order Schemas for the Ironing Service
=====================================

Pydantic models for the order endpoints: request bodies for placing,
editing, cancelling, and moving orders, and response models for orders with
their items and audit log.

Endpoint Coverage:
------------------
- POST /api/orders: OrderCreate -> OrderDetailOut
- GET /api/orders/user: OrderListResponse
- GET /api/orders/{id}: OrderDetailOut
- PUT /api/orders/{id}: OrderUpdate -> OrderActionResponse
- POST /api/orders/{id}/cancel: CancelRequest -> CancelResponse
- POST /api/orders/{id}/status: StatusUpdateRequest -> OrderActionResponse
- GET /api/orders/{id}/transitions: AllowedTransitionsOut

Money:
------
All *_cents fields are integer cents (500 = Rs 5.00).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..models import OrderStatus, Role


# =============================================================================
# Requests
# =============================================================================

class OrderItemIn(BaseModel):
    """One requested line: a service and how many garments."""
    service_id: int
    quantity: int = Field(gt=0)


class OrderCreate(BaseModel):
    """
    Request model for placing an order.

    Example:
        {
            "address_id": 1,
            "timeslot_id": 4,
            "delivery_type": "PREMIUM",
            "items": [{"service_id": 1, "quantity": 5}]
        }
    """
    address_id: int
    timeslot_id: int
    center_id: Optional[int] = None
    delivery_type: str = "STANDARD"
    items: List[OrderItemIn] = Field(min_length=1)


class OrderUpdate(BaseModel):
    """All fields optional - only provided fields change."""
    address_id: Optional[int] = None
    timeslot_id: Optional[int] = None
    delivery_type: Optional[str] = None
    items: Optional[List[OrderItemIn]] = Field(default=None, min_length=1)


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    # Kept as a plain string so an unknown value gets our 400, not a 422
    status: Optional[str] = None


class OtpVerifyRequest(BaseModel):
    code: Optional[str] = None


class ReasonRequest(BaseModel):
    reason: Optional[str] = None


# =============================================================================
# Responses
# =============================================================================

class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    service_id: int
    name: str
    quantity: int
    price_cents: int


class OrderLogOut(BaseModel):
    """One audit entry. from_status is null only for the initial PLACED row."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    from_status: Optional[OrderStatus] = None
    to_status: OrderStatus
    actor_id: int
    actor_role: Role
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("log_metadata", "metadata"),
    )
    created_at: Optional[datetime] = None


class OrderOut(BaseModel):
    """
    Summary of an order, without items or history.

    Attributes:
        status: Current lifecycle status
        total_cents: Items plus delivery charge, already paid from the wallet
        estimated_delivery_time: Placement time + 24h (PREMIUM) or 48h (STANDARD)
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    address_id: int
    center_id: Optional[int] = None
    timeslot_id: int
    pickup_trip_id: Optional[int] = None
    delivery_trip_id: Optional[int] = None
    status: OrderStatus
    delivery_type: str
    delivery_charge_cents: int
    estimated_delivery_time: Optional[datetime] = None
    total_cents: int
    payment_method: str
    cancellation_reason: Optional[str] = None
    pickup_failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderDetailOut(OrderOut):
    """Full order including line items and the audit log (oldest first)."""
    items: List[OrderItemOut] = []
    logs: List[OrderLogOut] = []


class OrderListResponse(BaseModel):
    orders: List[OrderDetailOut]


class OrderActionResponse(BaseModel):
    message: str
    order: OrderOut


class CancelResponse(BaseModel):
    message: str
    order: OrderOut
    refunded_amount_cents: int


class AllowedTransitionsOut(BaseModel):
    order_id: int
    status: OrderStatus
    allowed_transitions: List[OrderStatus]
    is_exception_state: bool
    is_terminal: bool
