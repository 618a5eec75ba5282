"""
Shared rate limiter.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from treespotter.config import settings


limiter = Limiter(key_func=get_remote_address)

# Limit string applied to submission endpoints
SUBMISSION_RATE_LIMIT = f"{settings.rate_limit_requests}/minute"
