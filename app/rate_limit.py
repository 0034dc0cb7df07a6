"""
Per-IP request throttling using slowapi.

Three tiers:
  • strict  – 5/min  (send-code – prevents email spam from one client)
  • verify  – 10/min (verify-code – slows brute-force guessing)
  • default – 60/min (everything else)

Per-email send limits are enforced separately by
:class:`app.services.send_limiter.SendRateLimiter`.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, default_limits=["60/minute"])

# Named rate strings for use in @limiter.limit() decorators
STRICT = "5/minute"     # send-code
VERIFY = "10/minute"    # verify-code
DEFAULT = "60/minute"   # general API
