"""Gatekeeper allowlist — JSON email allowlist kept in a file store.

Public API:
    AllowlistStore  — add_email() read-modify-write over the allowlist document
    AllowlistResult — outcome of one add_email() call
    AllowlistStatus — CREATED | DUPLICATE
"""
from app.allowlist.store import AllowlistResult, AllowlistStatus, AllowlistStore

__all__ = ["AllowlistResult", "AllowlistStatus", "AllowlistStore"]
