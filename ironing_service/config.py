"""
Configuration Module for the Ironing Service
============================================

This module centralizes the configuration settings, environment variables, and
constants used throughout the ironing service backend. All environment
variables and their defaults live here so there is one place to look when
deploying to a new environment.

Configuration Categories:
-------------------------
- **Database**: Connection URL for SQLAlchemy. PostgreSQL in production,
  SQLite is fine for local development and tests.

- **Pricing**: Delivery charges per delivery type and the turnaround used to
  compute estimated delivery times.

- **OTP**: Expiry window and length for the one-time codes used to confirm
  physical pickup and delivery of garments.

- **Rate Limiting**: Throttling for the OTP endpoints so codes cannot be
  brute-forced.

- **CORS Settings**: Allowed origins for the single-page frontend.

Environment Variables:
----------------------
- DATABASE_URL: SQLAlchemy URL (default: "sqlite:///./ironing_service.db")
- PREMIUM_DELIVERY_CHARGE_CENTS: Premium delivery surcharge (default: 5000)
- OTP_EXPIRY_MINUTES: OTP validity window (default: 15)
- RATE_LIMIT_OTP: OTP endpoint rate limit (default: "10 per minute")
- RATE_LIMIT_ENABLED: Enable/disable rate limiting (default: "true")
- CORS_ORIGINS: Comma-separated allowed origins (default: "*")

Usage:
------
    from ironing_service.config import (
        DELIVERY_CHARGES_CENTS,
        OTP_EXPIRY_MINUTES,
    )
"""

import os
from typing import Dict, List


# =============================================================================
# Database Configuration
# =============================================================================

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./ironing_service.db")


# =============================================================================
# Pricing Configuration
# =============================================================================
# All money amounts are integer cents to avoid float rounding in wallet math.

DELIVERY_TYPES: List[str] = ["STANDARD", "PREMIUM"]

DELIVERY_CHARGES_CENTS: Dict[str, int] = {
    "STANDARD": 0,
    "PREMIUM": int(os.getenv("PREMIUM_DELIVERY_CHARGE_CENTS", "5000")),
}

# Hours from order placement until the garments are expected back
DELIVERY_TURNAROUND_HOURS: Dict[str, int] = {
    "STANDARD": 48,
    "PREMIUM": 24,
}


# =============================================================================
# OTP Configuration
# =============================================================================
# One-time codes confirm that the delivery person physically met the customer.

OTP_EXPIRY_MINUTES: int = int(os.getenv("OTP_EXPIRY_MINUTES", "15"))
OTP_LENGTH: int = 6


# =============================================================================
# Rate Limiting Configuration
# =============================================================================
# Uses slowapi with in-memory storage (use Redis for multi-worker prod).

RATE_LIMIT_OTP: str = os.getenv("RATE_LIMIT_OTP", "10 per minute")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"


def get_rate_limit_otp() -> str:
    """Return the current OTP rate limit (allows dynamic override in tests)."""
    return RATE_LIMIT_OTP


# =============================================================================
# CORS Configuration
# =============================================================================
# Format: comma-separated list of origins, e.g.
# "https://ironing.example.com,http://localhost:5173"

_cors_origins_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in _cors_origins_env.split(",")
    if origin.strip()
] or ["*"]
