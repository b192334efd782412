"""
One-time codes for confirming pickup and delivery.

The delivery person asks for a code when standing at the customer's door; the
customer reads it back (pickup) or the customer submits the code they were
sent (delivery). Codes are 6 digits, expire after OTP_EXPIRY_MINUTES, and are
stored only as SHA-256 hashes.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from . import config
from .models import OTP

logger = logging.getLogger(__name__)

PICKUP = "pickup"
DELIVERY = "delivery"
OTP_ACTIONS = (PICKUP, DELIVERY)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def generate_otp(length: Optional[int] = None) -> str:
    """Return a random numeric code with no leading zero."""
    length = length or config.OTP_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def create_otp(db: Session, order_id: int, action: str) -> str:
    """
    Create and store a new OTP for an order.

    Older unverified codes for the same order/action stay in the table but
    are ignored by verify_otp, which only looks at the most recent one.

    Returns:
        The plain code, so the caller can deliver it (SMS or response)
    """
    if action not in OTP_ACTIONS:
        raise ValueError(f"Unknown OTP action: {action}")

    code = generate_otp()
    otp = OTP(
        order_id=order_id,
        action=action,
        code_hash=hash_code(code),
        expires_at=_utcnow() + timedelta(minutes=config.OTP_EXPIRY_MINUTES),
    )
    db.add(otp)
    db.commit()

    logger.info("Issued %s OTP for order %s", action, order_id)
    logger.debug("OTP for order %s (%s): %s", order_id, action, code)
    return code


def verify_otp(db: Session, order_id: int, action: str, code: str, commit: bool = True) -> bool:
    """
    Check a code against the most recent unverified OTP for the order/action.

    Returns False when there is no pending OTP, it has expired, or the code
    does not match. On success the OTP is marked verified so it cannot be
    replayed.
    """
    otp = (
        db.query(OTP)
        .filter(
            OTP.order_id == order_id,
            OTP.action == action,
            OTP.verified_at.is_(None),
        )
        .order_by(OTP.id.desc())
        .first()
    )

    if otp is None:
        logger.info("No pending %s OTP for order %s", action, order_id)
        return False

    if _utcnow() > _as_utc(otp.expires_at):
        logger.info("Expired %s OTP for order %s", action, order_id)
        return False

    if not secrets.compare_digest(hash_code(str(code).strip()), otp.code_hash):
        logger.info("Wrong %s OTP for order %s", action, order_id)
        return False

    otp.verified_at = _utcnow()
    if commit:
        db.commit()
    else:
        db.flush()
    return True
