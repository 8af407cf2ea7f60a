"""
Rate limiting configuration using slowapi.

Three tiers:
  • public  – 10/min (unauthenticated writes: bookings, challenges, proofs)
  • lookup  – 30/min (unauthenticated reads of a single booking)
  • default – 60/min (everything else)

The limiter keys on client IP by default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Named rate strings for use in @limiter.limit() decorators
PUBLIC_WRITE = "10/minute"   # booking / challenge / proof submissions
PUBLIC_READ = "30/minute"    # booking link lookups
DEFAULT = "60/minute"        # general API

limiter = Limiter(key_func=get_remote_address, default_limits=[DEFAULT])
