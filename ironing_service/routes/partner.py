"""
Partner Routes for the Ironing Service
======================================

Endpoints used by delivery persons while running their trips.

Endpoints:
----------
- GET /partner/assignments: The caller's trips with their orders
- POST /partner/order/{id}/pickup: Text the customer a pickup code
- POST /partner/order/{id}/verify-pickup: Check the code, order -> PICKED_UP
- POST /partner/order/{id}/delivery: Order -> OUT_FOR_DELIVERY, text delivery code
- POST /partner/order/{id}/pickup-failure: Order -> PICKUP_FAILED with a reason

Authentication:
---------------
DELIVERY_PERSON bearer token. Every order endpoint additionally checks that
the order is on one of the caller's trips.

Rate Limiting:
--------------
The OTP endpoints share the limit from RATE_LIMIT_OTP (default
"10 per minute" per client IP).
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from .. import config
from ..auth import require_roles
from ..db import get_db
from ..models import Role, User
from ..rate_limit import otp_limit
from ..schemas.orders import OrderActionResponse, OrderOut, OtpVerifyRequest, ReasonRequest
from ..schemas.trips import OtpIssuedResponse, TripListResponse, TripOut
from ..services import fulfillment, orders, trips


logger = logging.getLogger(__name__)

partner_router = APIRouter(prefix="/partner", tags=["Partner"])

require_partner = require_roles(Role.DELIVERY_PERSON)


@partner_router.get("/assignments", response_model=TripListResponse)
def list_assignments(
    partner: User = Depends(require_partner),
    db: Session = Depends(get_db),
) -> TripListResponse:
    return TripListResponse(
        trips=[TripOut.model_validate(t) for t in trips.list_trips(db, delivery_person_id=partner.id)]
    )


@partner_router.post("/order/{order_id}/pickup", response_model=OtpIssuedResponse)
@otp_limit
def request_pickup_otp(
    request: Request,
    order_id: int,
    partner: User = Depends(require_partner),
    db: Session = Depends(get_db),
) -> OtpIssuedResponse:
    """
    Issue a pickup code and text it to the customer.

    When SMS runs in mock mode the code is returned in the response so the
    flow can be completed without a real phone.
    """
    code, sms_result = fulfillment.request_pickup_otp(db, partner, order_id)
    return OtpIssuedResponse(
        message="OTP sent to customer",
        expires_in_minutes=config.OTP_EXPIRY_MINUTES,
        sms_status=sms_result.get("status", "unknown"),
        code=code if sms_result.get("mock") else None,
    )


@partner_router.post("/order/{order_id}/verify-pickup", response_model=OrderActionResponse)
@otp_limit
def verify_pickup(
    request: Request,
    order_id: int,
    payload: OtpVerifyRequest,
    partner: User = Depends(require_partner),
    db: Session = Depends(get_db),
) -> OrderActionResponse:
    order = fulfillment.verify_pickup(db, partner, order_id, payload.code)
    trips.complete_trip_if_done(db, order)
    return OrderActionResponse(message="Pickup verified", order=OrderOut.model_validate(order))


@partner_router.post("/order/{order_id}/delivery", response_model=OrderActionResponse)
def mark_out_for_delivery(
    order_id: int,
    partner: User = Depends(require_partner),
    db: Session = Depends(get_db),
) -> OrderActionResponse:
    order, sms_result = fulfillment.mark_out_for_delivery(db, partner, order_id)
    trips.complete_trip_if_done(db, order)
    if sms_result.get("status") == "error":
        logger.warning("Delivery OTP SMS failed for order %s: %s", order.id, sms_result.get("error"))
    return OrderActionResponse(message="Order out for delivery", order=OrderOut.model_validate(order))


@partner_router.post("/order/{order_id}/pickup-failure", response_model=OrderActionResponse)
def report_pickup_failure(
    order_id: int,
    payload: ReasonRequest,
    partner: User = Depends(require_partner),
    db: Session = Depends(get_db),
) -> OrderActionResponse:
    order = orders.mark_pickup_failure(db, partner, order_id, payload.reason)
    trips.complete_trip_if_done(db, order)
    return OrderActionResponse(message="Pickup failure recorded", order=OrderOut.model_validate(order))
