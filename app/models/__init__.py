"""Gatekeeper models package.

Defines the shared error contracts used by every handler:

  - errors.py    — ServiceError hierarchy (ValidationError, AuthError, InternalError)
  - responses.py — the uniform ``{"error": {statusCode, message, error}}`` envelope
"""
