"""
Services Package for the Ironing Service
========================================

Business logic lives here; routes only parse requests and serialize results.

Available Services:
-------------------
- **orders**: placing, editing, cancelling, and reading orders; staff status updates
- **fulfillment**: OTP-confirmed pickup and delivery hand-offs
- **trips**: batching orders into pickup/delivery trips and closing finished trips
- **addresses**: the customer's saved pickup/delivery addresses

Every write function commits exactly once and rolls back on error. Business
errors are OrderServiceError subclasses carrying the HTTP status to return.

Usage:
------
    from ironing_service.services import orders, trips
    order = orders.create_order(db, user, address_id=1, timeslot_id=3, items=[...])
"""

from . import orders
from . import fulfillment
from . import trips
from . import addresses

__all__ = ["orders", "fulfillment", "trips", "addresses"]
