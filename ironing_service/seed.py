"""
Seed a database with demo data.

Creates one user per role (each with a fresh API token), a customer wallet
and address, an ironing center, the service catalog, and pickup timeslots
for the next few days. Tokens are printed once; only their hashes are stored.

Usage:
    python -m ironing_service.seed
    python -m ironing_service.seed --days 7 --reset-tokens
"""

import argparse
from datetime import date, timedelta
from typing import Dict

from sqlalchemy.orm import Session

from .auth import issue_api_token
from .db import SessionLocal
from .models import Address, Center, Role, Service, Timeslot, User, Wallet


DEMO_USERS = [
    {"name": "Admin", "email": "admin@ironing.com", "phone": "9000000001", "role": Role.ADMIN},
    {"name": "Test User", "email": "user@example.com", "phone": "9000000002", "role": Role.USER},
    {"name": "Delivery Person", "email": "delivery@ironing.com", "phone": "9000000003", "role": Role.DELIVERY_PERSON},
    {"name": "Floor Manager", "email": "manager@ironing.com", "phone": "9000000004", "role": Role.FLOOR_MANAGER},
    {"name": "Center Operator", "email": "operator@ironing.com", "phone": "9000000005", "role": Role.CENTER_OPERATOR},
]

DEMO_SERVICES = [
    ("Shirt", 500),
    ("Pants", 700),
    ("Dress", 1200),
]

TIMESLOT_WINDOWS = [("09:00", "11:00"), ("11:00", "13:00")]
TIMESLOT_CAPACITY = 10
CUSTOMER_WALLET_CENTS = 50000


def seed(db: Session, days: int = 5, reset_tokens: bool = False) -> Dict[str, str]:
    """
    Insert demo data, skipping anything that already exists.

    Returns:
        {email: plain API token} for users whose token was issued in this run
    """
    tokens = {}

    for user_data in DEMO_USERS:
        user = db.query(User).filter(User.email == user_data["email"]).first()
        if user is None:
            user = User(**user_data)
            db.add(user)
            db.flush()
        if user.api_token_hash is None or reset_tokens:
            tokens[user.email] = issue_api_token(db, user)

    customer = db.query(User).filter(User.email == "user@example.com").one()
    if customer.wallet is None:
        db.add(Wallet(user_id=customer.id, balance_cents=CUSTOMER_WALLET_CENTS))
    if not customer.addresses:
        db.add(Address(
            user_id=customer.id,
            label="Home",
            line1="12 MG Road",
            city="Bengaluru",
            pincode="560001",
        ))

    center = db.query(Center).filter(Center.name == "Downtown Ironing Center").first()
    if center is None:
        center = Center(name="Downtown Ironing Center", address="1 Main Street")
        db.add(center)
        db.flush()

    for name, price in DEMO_SERVICES:
        if db.query(Service).filter(Service.name == name).first() is None:
            db.add(Service(name=name, base_price_cents=price))

    today = date.today()
    for offset in range(days):
        day = today + timedelta(days=offset)
        for start, end in TIMESLOT_WINDOWS:
            exists = (
                db.query(Timeslot)
                .filter(Timeslot.center_id == center.id, Timeslot.date == day, Timeslot.start_time == start)
                .first()
            )
            if exists is None:
                db.add(Timeslot(
                    center_id=center.id,
                    date=day,
                    start_time=start,
                    end_time=end,
                    capacity=TIMESLOT_CAPACITY,
                    remaining_capacity=TIMESLOT_CAPACITY,
                ))

    db.commit()
    return tokens


def main():
    parser = argparse.ArgumentParser(description="Seed the ironing service database with demo data")
    parser.add_argument("--days", type=int, default=5, help="How many days of timeslots to create")
    parser.add_argument(
        "--reset-tokens",
        action="store_true",
        help="Issue new API tokens for existing demo users",
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        tokens = seed(db, days=args.days, reset_tokens=args.reset_tokens)
    finally:
        db.close()

    print("Seed complete.")
    if tokens:
        print("\nAPI tokens (shown once):")
        for email, token in tokens.items():
            print(f"  {email}: {token}")
    else:
        print("No new tokens issued (use --reset-tokens to rotate).")


if __name__ == "__main__":
    main()
