"""Allowlist document store.

The allowlist is a JSON array of normalized (trimmed, lowercased) email
addresses kept under a single key of a FileStore. add_email() is the only
mutation; it is idempotent and case-insensitive.

Read-modify-write protocol for one add_email() call:
  1. read the document; if the key is missing, write "[]" first
  2. read the document again
  3. parse it:
       - not strict JSON (NaN, Infinity included) → InternalError, untouched
       - JSON but not an array     → reset to "[]", persist, continue
  4. already present              → return DUPLICATE, no write
  5. otherwise append and rewrite the whole array (2-space indent)

At most two writes happen per call (init + insert) and none on the duplicate
path. The FileStore offers no compare-and-swap: calls are serialized within
this process by an asyncio.Lock, but two processes sharing a backend can still
lose an update.
"""

from __future__ import annotations

import asyncio
import enum
import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from app.constants import (
    DEFAULT_EMAILS_KEY,
    EMAIL_PATTERN,
    EMAILS_JSON_INDENT,
    MSG_EMAIL_ADDED,
    MSG_EMAIL_EXISTS,
    MSG_INTERNAL_ERROR,
    MSG_INVALID_EMAIL,
)
from app.models.errors import InternalError, ValidationError
from app.storage.protocol import FileNotExistsError, FileStore
from app.utils.logger import PerformanceLogger, get_logger
from app.utils.params import missing_params_message

_EMAIL_RE = re.compile(EMAIL_PATTERN)

_EMPTY_DOCUMENT = b"[]"


class AllowlistStatus(str, enum.Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class AllowlistResult:
    """Outcome of one add_email() call.

    ``emails`` is the full allowlist after the call, in insertion order.
    """

    status: AllowlistStatus
    email: str
    emails: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.emails)

    @property
    def message(self) -> str:
        if self.status is AllowlistStatus.CREATED:
            return MSG_EMAIL_ADDED
        return MSG_EMAIL_EXISTS

    def to_body(self) -> dict[str, Any]:
        """Response body for the allowlist endpoint."""
        return {
            "message": self.message,
            "email": self.email,
            "totalEmails": self.total,
            "allEmails": list(self.emails),
        }


# ─── Email helpers ────────────────────────────────────────────────────────────


def normalize_email(raw_email: str) -> str:
    return raw_email.strip().lower()


def is_valid_email(raw_email: object) -> bool:
    """True if ``raw_email`` is a string shaped like ``local@domain.tld``.

    Checked against the raw string: surrounding whitespace makes it invalid.
    """
    return isinstance(raw_email, str) and _EMAIL_RE.fullmatch(raw_email) is not None


def validate_email(raw_email: object) -> str:
    """Validate a raw email and return its normalized form.

    Raises:
        ValidationError: missing / empty, or not shaped like an email.
    """
    if not raw_email:
        raise ValidationError(missing_params_message({}, ["email"]))
    if not is_valid_email(raw_email):
        raise ValidationError(MSG_INVALID_EMAIL)
    return normalize_email(raw_email)  # type: ignore[arg-type]


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Invalid JSON token: {token}")


def _parse_finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {token}")
    return value


def parse_document(content: bytes) -> Any:
    """Parse strict JSON: NaN, Infinity and overflowing numbers raise ValueError."""
    return json.loads(
        content, parse_constant=_reject_constant, parse_float=_parse_finite_float
    )


def serialize_emails(emails: list[str]) -> bytes:
    return json.dumps(
        emails, indent=EMAILS_JSON_INDENT, ensure_ascii=False, allow_nan=False
    ).encode("utf-8")


# ─── AllowlistStore ──────────────────────────────────────────────────────────


class AllowlistStore:
    """Owns the allowlist document at ``key`` in ``store``.

    Usage (in lifespan):
        allowlist = AllowlistStore(file_store, key=config.storage.emails_key)
        app.state.allowlist_store = allowlist

    ``logger`` defaults to the module logger; pass a bound logger to attach
    extra context to every line.
    """

    def __init__(
        self,
        store: FileStore,
        key: str = DEFAULT_EMAILS_KEY,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
    ) -> None:
        self._store = store
        self._key = key
        self._logger = logger or get_logger(__name__)
        self._lock = asyncio.Lock()

    # ── Public API ────────────────────────────────────────────────────────────

    async def add_email(self, raw_email: object) -> AllowlistResult:
        """Add ``raw_email`` to the allowlist unless it is already present.

        Raises:
            ValidationError: missing or malformed email (before any storage access).
            InternalError:   the stored document is not valid JSON.
            StorageError:    the file store failed.
        """
        email = validate_email(raw_email)

        async with self._lock:
            emails = await self.load_emails()

            if email in emails:
                self._logger.info(
                    "Email already in allowlist",
                    key=self._key,
                    total=len(emails),
                )
                return AllowlistResult(AllowlistStatus.DUPLICATE, email, emails)

            emails.append(email)
            await self._write(serialize_emails(emails))

        self._logger.info("Email added to allowlist", key=self._key, total=len(emails))
        return AllowlistResult(AllowlistStatus.CREATED, email, emails)

    async def load_emails(self) -> list[Any]:
        """Read the allowlist, creating or repairing the document as needed.

        A missing document is created as "[]". A document holding valid JSON
        that is not an array is reset to "[]". A document that is not JSON at
        all raises InternalError and is left as is.
        """
        try:
            await self._read()
        except FileNotExistsError:
            self._logger.info("Allowlist document missing — creating it", key=self._key)
            await self._write(_EMPTY_DOCUMENT)

        content = await self._read()

        try:
            parsed = parse_document(content)
        except ValueError as exc:
            self._logger.error(
                "Allowlist document is not valid JSON",
                key=self._key,
                error=str(exc),
            )
            raise InternalError.from_exception(MSG_INTERNAL_ERROR, exc) from exc

        if not isinstance(parsed, list):
            self._logger.warning(
                "Allowlist document is not an array — resetting to empty",
                key=self._key,
                actual_type=type(parsed).__name__,
            )
            parsed = []
            await self._write(_EMPTY_DOCUMENT)

        return parsed

    # ── Storage round trips ───────────────────────────────────────────────────

    async def _read(self) -> bytes:
        with PerformanceLogger(
            "allowlist read", self._logger, expected=(FileNotExistsError,), key=self._key
        ):
            return await self._store.read(self._key)

    async def _write(self, data: bytes) -> None:
        with PerformanceLogger("allowlist write", self._logger, key=self._key, size=len(data)):
            await self._store.write(self._key, data)
