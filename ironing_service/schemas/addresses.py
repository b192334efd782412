"""
Address schemas: the customer's saved pickup/delivery addresses.

Endpoint Coverage:
------------------
- GET /addresses: List the caller's addresses
- POST /addresses: Add an address
- PUT /addresses/{id}: Edit an address
- DELETE /addresses/{id}: Remove an address no order uses
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AddressCreate(BaseModel):
    label: str = Field(min_length=1)
    line1: str = Field(min_length=1)
    city: str = Field(min_length=1)
    pincode: str = Field(min_length=1)


class AddressUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""
    label: Optional[str] = Field(default=None, min_length=1)
    line1: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    pincode: Optional[str] = Field(default=None, min_length=1)


class AddressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    label: Optional[str] = None
    line1: str
    city: str
    pincode: str


class AddressListResponse(BaseModel):
    addresses: List[AddressOut]
