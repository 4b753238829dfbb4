"""Rate limiter configuration module.

This module is separate from main.py to avoid circular imports when routers
need to access the limiter.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from models.config import settings

# Create rate limiter - imported by routers and main.py
limiter = Limiter(key_func=get_remote_address)

LOGIN_RATE_LIMIT = settings.LOGIN_RATE_LIMIT
REGISTER_RATE_LIMIT = settings.REGISTER_RATE_LIMIT
SUBMIT_RATE_LIMIT = settings.SUBMIT_RATE_LIMIT
