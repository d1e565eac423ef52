from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address

from .config import settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    headers_enabled=True,
)

__all__ = ["limiter", "_rate_limit_exceeded_handler"]
