"""
Trip and partner schemas.

Covers the floor-manager trip endpoints (/api/admin/trips) and the delivery
person endpoints (/api/partner/...).
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import TripStatus, TripType
from .orders import OrderOut


class TripCreate(BaseModel):
    """
    Example:
        {
            "delivery_person_id": 3,
            "type": "PICKUP",
            "scheduled_date": "2026-10-19",
            "start_time": "09:00",
            "end_time": "11:00",
            "order_ids": [12, 13]
        }
    """
    delivery_person_id: int
    type: TripType
    scheduled_date: date
    start_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    order_ids: List[int] = []


class TripAssignOrders(BaseModel):
    order_ids: List[int] = []


class TripOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    delivery_person_id: int
    type: TripType
    status: TripStatus
    scheduled_date: date
    start_time: str
    end_time: str
    created_at: Optional[datetime] = None
    pickup_orders: List[OrderOut] = []
    delivery_orders: List[OrderOut] = []


class TripAssignmentResponse(BaseModel):
    """Trip plus which requested orders were attached and which were skipped."""
    trip: TripOut
    assigned_order_ids: List[int]
    skipped_order_ids: List[int]


class TripListResponse(BaseModel):
    trips: List[TripOut]


class OtpIssuedResponse(BaseModel):
    """
    Returned after a pickup OTP is issued.

    code is only included when SMS is in mock mode (no Twilio configured), so
    development setups can complete the flow without a phone.
    """
    message: str
    expires_in_minutes: int
    sms_status: str
    code: Optional[str] = None
