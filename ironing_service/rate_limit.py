"""
Shared slowapi limiter.

Registered on the app in main.py (``app.state.limiter``) and used to throttle
the OTP endpoints so codes cannot be guessed by brute force.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import RATE_LIMIT_ENABLED, get_rate_limit_otp


limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

otp_limit = limiter.limit(get_rate_limit_otp)
