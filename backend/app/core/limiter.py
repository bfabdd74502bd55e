"""Rate limiter singleton: import from here to avoid circular deps.

Keyed by client address. RATE_LIMIT_ENABLED=false turns every limit off
(local scripts, tests).
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
