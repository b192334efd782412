"""
Pickup and delivery hand-offs confirmed by one-time codes.

Flow:
    1. Delivery person arrives for pickup and requests a pickup OTP. The code
       is texted to the customer, who reads it back.
    2. verify_pickup checks the code and moves the order to PICKED_UP.
    3. Later, mark_out_for_delivery moves the order to OUT_FOR_DELIVERY and
       texts the customer a delivery OTP.
    4. The customer submits that code (verify_delivery), moving the order to
       DELIVERED.

The OTP check and the resulting transition commit together, so a code is
never burned without the order moving.
"""

import logging
from typing import Any, Dict, Tuple

from sqlalchemy.orm import Session

from .. import config, otp, sms
from ..models import Order, OrderStatus, User
from ..order_state_machine import apply_transition, check_transition
from .orders import AccessDeniedError, ValidationError, get_order

logger = logging.getLogger(__name__)


def _require_pickup_partner(order: Order, user: User) -> None:
    if order.pickup_trip is None or order.pickup_trip.delivery_person_id != user.id:
        raise AccessDeniedError("Access denied - order not assigned to you")


def _require_delivery_partner(order: Order, user: User) -> None:
    if order.delivery_trip is None or order.delivery_trip.delivery_person_id != user.id:
        raise AccessDeniedError("Access denied - order not assigned to you")


def _send_code(order: Order, action: str, code: str) -> Dict[str, Any]:
    return sms.send_otp_sms(
        order.user.phone,
        order.id,
        action,
        code,
        config.OTP_EXPIRY_MINUTES,
    )


def request_pickup_otp(db: Session, partner: User, order_id: int) -> Tuple[str, Dict[str, Any]]:
    """
    Issue a pickup code for an order on the partner's pickup trip.

    Returns:
        (plain code, SMS result dict)
    """
    order = get_order(db, order_id)
    _require_pickup_partner(order, partner)
    # Fail early instead of texting a code that could never be used
    check_transition(order.status, OrderStatus.PICKED_UP)

    code = otp.create_otp(db, order.id, otp.PICKUP)
    return code, _send_code(order, otp.PICKUP, code)


def verify_pickup(db: Session, partner: User, order_id: int, code: str) -> Order:
    if not code:
        raise ValidationError("OTP code is required")

    order = get_order(db, order_id)
    _require_pickup_partner(order, partner)

    try:
        if not otp.verify_otp(db, order.id, otp.PICKUP, code, commit=False):
            raise ValidationError("Invalid or expired OTP")
        apply_transition(
            db,
            order,
            OrderStatus.PICKED_UP,
            actor_id=partner.id,
            actor_role=partner.role,
            metadata={"action": "pickup_verified"},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    return order


def mark_out_for_delivery(db: Session, partner: User, order_id: int) -> Tuple[Order, Dict[str, Any]]:
    """
    Move an order on the partner's delivery trip to OUT_FOR_DELIVERY and text
    the customer their delivery code.
    """
    order = get_order(db, order_id)
    _require_delivery_partner(order, partner)

    try:
        apply_transition(
            db,
            order,
            OrderStatus.OUT_FOR_DELIVERY,
            actor_id=partner.id,
            actor_role=partner.role,
            metadata={"action": "marked_out_for_delivery"},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    code = otp.create_otp(db, order.id, otp.DELIVERY)
    sms_result = _send_code(order, otp.DELIVERY, code)
    db.refresh(order)
    return order, sms_result


def verify_delivery(db: Session, customer: User, order_id: int, code: str) -> Order:
    """Customer confirms receipt with the delivery code."""
    if not code:
        raise ValidationError("OTP code is required")

    order = get_order(db, order_id)
    if order.user_id != customer.id:
        raise AccessDeniedError("Access denied")

    try:
        if not otp.verify_otp(db, order.id, otp.DELIVERY, code, commit=False):
            raise ValidationError("Invalid or expired OTP")
        apply_transition(
            db,
            order,
            OrderStatus.DELIVERED,
            actor_id=customer.id,
            actor_role=customer.role,
            metadata={"action": "delivery_verified"},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    return order
