"""Shared constants for Gatekeeper.

Storage keys, identity-provider endpoints, response messages and size limits
used across modules are defined here. Import from here rather than repeating
literals in handlers.
"""

# ─── Allowlist document ──────────────────────────────────────────────────────

# Key of the JSON allowlist document in the file store.
DEFAULT_EMAILS_KEY: str = "data/emails.json"

# Email shape: one "@", no whitespace, at least one "." in the domain part.
# Always applied with re.fullmatch() against the raw (non-normalized) input.
EMAIL_PATTERN: str = r"[^\s@]+@[^\s@]+\.[^\s@]+"

# Indentation used when the allowlist is rewritten after an insertion.
EMAILS_JSON_INDENT: int = 2

MSG_EMAIL_ADDED: str = "Email added successfully"
MSG_EMAIL_EXISTS: str = "Email already exists in the list"
MSG_INVALID_EMAIL: str = "Invalid email format"
MSG_MISSING_PARAMS: str = "Missing request parameters"
MSG_INTERNAL_ERROR: str = "Internal server error"

# ─── Identity provider (Adobe IMS) ───────────────────────────────────────────

DEFAULT_IMS_URL: str = "https://ims-na1.adobelogin.com"
IMS_VALIDATE_TOKEN_PATH: str = "/ims/validate_token/v1"
IMS_PROFILE_PATH: str = "/ims/profile/v1"

# A caller is an employee when the profile email is in this domain AND the
# account is of this type.
DEFAULT_EMPLOYEE_DOMAIN: str = "adobe.com"
DEFAULT_EMPLOYEE_ACCOUNT_TYPE: str = "type3"

MSG_MISSING_ACCESS_TOKEN: str = "Missing access token"
MSG_MISSING_CLIENT_ID: str = "Missing client ID"
MSG_INVALID_ACCESS_TOKEN: str = "Invalid access token"
MSG_IDENTITY_ERROR: str = "Error validating token or fetching profile"

# ─── Greeting ────────────────────────────────────────────────────────────────

DEFAULT_GREETING_NAME: str = "Milo Indexer"

# ─── Timeouts ────────────────────────────────────────────────────────────────

# Applied to every file-store round trip (read or write).
DEFAULT_STORAGE_TIMEOUT_S: float = 5.0

# Applied to every identity-provider request.
DEFAULT_IDENTITY_TIMEOUT_S: float = 10.0

# ─── Request limits ──────────────────────────────────────────────────────────

# Request bodies above this size get HTTP 413 before any handler runs.
# Every endpoint takes a handful of short string fields.
MAX_REQUEST_BODY_BYTES: int = 65_536  # 64 KB
