"""
Per-client rate limiting for the analysis endpoints.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def analysis_rate_limit() -> str:
    """Read on every request so RATE_LIMIT_PER_MINUTE changes apply without a restart."""
    return f"{get_settings().rate_limit_per_minute}/minute"
