"""
Catalog schemas: services, centers, and timeslots shown to customers while
placing an order.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ServiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    base_price_cents: int


class CenterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str


class TimeslotOut(BaseModel):
    """A pickup window; remaining_capacity is how many more orders it accepts."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    center_id: int
    date: date
    start_time: str
    end_time: str
    capacity: int
    remaining_capacity: int
    center_name: Optional[str] = None
