"""Request ID generation for Gatekeeper.

Every request served by the app gets a ULID (26 chars, Crockford Base32,
lexicographically sortable by creation time). It is:
  - bound into the structlog context for the lifetime of the request
  - echoed back to the caller in the ``X-Request-ID`` response header

Uses the `python-ulid` library — do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Example::

        request_id = generate_ulid()
        # "01KJ0JRVHYA7KX32VPN5ZSCTMV"
    """
    return str(ULID())


def is_valid_request_id(value: str) -> bool:
    """Return True if ``value`` parses as a ULID.

    Used to decide whether a caller-supplied ``X-Request-ID`` can be reused
    as-is or must be replaced with a fresh one.
    """
    try:
        ULID.from_str(value)
    except (ValueError, TypeError):
        return False
    return True
