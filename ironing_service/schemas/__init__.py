"""
Schemas Package for the Ironing Service
=======================================

Pydantic request/response models grouped by domain:

- **orders**: order placement, editing, cancellation, status changes, audit log
- **trips**: trip planning and delivery-partner responses
- **catalog**: services, centers, and timeslots
- **addresses**: customer address book

All response models use ``ConfigDict(from_attributes=True)`` so they can be
built straight from SQLAlchemy objects with ``model_validate``.
"""

from .orders import (
    OrderItemIn,
    OrderCreate,
    OrderUpdate,
    CancelRequest,
    StatusUpdateRequest,
    OtpVerifyRequest,
    ReasonRequest,
    OrderItemOut,
    OrderLogOut,
    OrderOut,
    OrderDetailOut,
    OrderListResponse,
    OrderActionResponse,
    CancelResponse,
    AllowedTransitionsOut,
)
from .trips import (
    TripCreate,
    TripAssignOrders,
    TripOut,
    TripAssignmentResponse,
    TripListResponse,
    OtpIssuedResponse,
)
from .catalog import ServiceOut, CenterOut, TimeslotOut
from .addresses import AddressCreate, AddressUpdate, AddressOut, AddressListResponse

__all__ = [
    "OrderItemIn",
    "OrderCreate",
    "OrderUpdate",
    "CancelRequest",
    "StatusUpdateRequest",
    "OtpVerifyRequest",
    "ReasonRequest",
    "OrderItemOut",
    "OrderLogOut",
    "OrderOut",
    "OrderDetailOut",
    "OrderListResponse",
    "OrderActionResponse",
    "CancelResponse",
    "AllowedTransitionsOut",
    "TripCreate",
    "TripAssignOrders",
    "TripOut",
    "TripAssignmentResponse",
    "TripListResponse",
    "OtpIssuedResponse",
    "ServiceOut",
    "CenterOut",
    "TimeslotOut",
    "AddressCreate",
    "AddressUpdate",
    "AddressOut",
    "AddressListResponse",
]
