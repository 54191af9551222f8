"""Shared rate limiter for Gatekeeper write endpoints.

Uses slowapi (Starlette-compatible rate limiting) keyed on the client address.
POST /allowlist rewrites a shared document on every new email, so it gets a
per-client cap.

The Limiter instance is created here and shared between:
  - app/allowlist/router.py  (route decorator)
  - app/main.py              (app.state.limiter + SlowAPIMiddleware registration)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

ALLOWLIST_RATE_LIMIT = "30/minute"
