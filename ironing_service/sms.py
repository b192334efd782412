"""
SMS service for pickup and delivery codes.

Sends real SMS via Twilio when configured, falls back to logging in mock mode.

Environment variables:
- TWILIO_ACCOUNT_SID: Twilio Account SID (starts with AC)
- TWILIO_AUTH_TOKEN: Twilio Auth Token
- TWILIO_PHONE_NUMBER: Twilio phone number to send from (e.g., +18555141417)
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

# Twilio configuration from environment
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")


def is_twilio_configured() -> bool:
    """Check if Twilio is properly configured."""
    return all([TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER])


def normalize_phone_number(phone: str) -> str:
    """
    Normalize phone number to E.164 format for Twilio.

    Examples:
        "98765 43210" -> "+919876543210"
        "+91 98765 43210" -> "+919876543210"
        "+1 732 555 0101" -> "+17325550101"
    """
    has_plus = phone.strip().startswith("+")
    digits = ''.join(c for c in phone if c.isdigit())

    # Bare 10-digit numbers are domestic Indian mobiles
    if not has_plus and len(digits) == 10:
        digits = '91' + digits

    return '+' + digits


def send_otp_sms(
    phone: Optional[str],
    order_id: int,
    action: str,
    code: str,
    expiry_minutes: int,
) -> dict:
    """
    Send a pickup/delivery code to the customer.

    Args:
        phone: Customer's phone number (None means nothing can be sent)
        order_id: The order ID for reference
        action: "pickup" or "delivery"
        code: The plain OTP
        expiry_minutes: How long the code stays valid

    Returns:
        dict with status; "mock" is True when Twilio is not configured
    """
    message_body = (
        f"Your {action} code for order #{order_id} is {code}. "
        f"Share it with our delivery partner. Valid for {expiry_minutes} minutes."
    )

    if not phone:
        logger.warning("Order %s has no customer phone; %s code not sent", order_id, action)
        return {"status": "skipped", "mock": not is_twilio_configured()}

    if not is_twilio_configured():
        # Mock mode - just log the SMS
        logger.info("MOCK SMS to %s for order %s (%s code)", phone, order_id, action)
        return {
            "status": "sent",
            "phone": phone,
            "mock": True,
        }

    try:
        from twilio.rest import Client

        client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)

        normalized_phone = normalize_phone_number(phone)

        message = client.messages.create(
            body=message_body,
            from_=TWILIO_PHONE_NUMBER,
            to=normalized_phone
        )

        logger.info(
            "SMS sent successfully to %s for order %d (SID: %s)",
            normalized_phone, order_id, message.sid
        )

        return {
            "status": "sent",
            "phone": normalized_phone,
            "mock": False,
            "message_sid": message.sid,
        }

    except Exception as e:
        logger.error("Failed to send SMS to %s: %s", phone, str(e))
        return {
            "status": "error",
            "phone": phone,
            "error": str(e),
            "mock": False,
        }
