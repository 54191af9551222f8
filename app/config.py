"""Config loading for Gatekeeper.

Reads `.gatekeeper/config.yaml` (or `~/.gatekeeper/config.yaml`).
Raises SystemExit on parse errors or missing `version` field.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (if provided — for testing or explicit override)
  2. GATEKEEPER_CONFIG environment variable (if set)
  3. `.gatekeeper/config.yaml` (working directory — for development)
  4. `~/.gatekeeper/config.yaml` (home directory — for production deployments)

Environment variable overrides:
  GATEKEEPER_PORT       — overrides server.port
  GATEKEEPER_EMAILS_KEY — overrides storage.emails_key
  GATEKEEPER_CONFIG     — sets an explicit config file path to try first

Supabase credentials are never read from the config file; see
app/storage/factory.py (SUPABASE_URL / SUPABASE_KEY).
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Optional

import yaml

from app.constants import (
    DEFAULT_EMAILS_KEY,
    DEFAULT_EMPLOYEE_ACCOUNT_TYPE,
    DEFAULT_EMPLOYEE_DOMAIN,
    DEFAULT_GREETING_NAME,
    DEFAULT_IDENTITY_TIMEOUT_S,
    DEFAULT_IMS_URL,
    DEFAULT_STORAGE_TIMEOUT_S,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# ─── Validation sets ─────────────────────────────────────────────────────────

# Valid values for storage.backend. "auto" picks supabase when SUPABASE_URL and
# SUPABASE_KEY are both set, else local.
VALID_STORAGE_BACKENDS: frozenset[str] = frozenset({"auto", "local", "memory", "supabase"})

DEFAULT_CONFIG_PATHS = [
    ".gatekeeper/config.yaml",
    os.path.expanduser("~/.gatekeeper/config.yaml"),
]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class StorageConfig:
    """File store configuration.

    backend:    "auto" | "local" | "memory" | "supabase"
    root:       Directory holding the files of the local backend.
    emails_key: Key of the allowlist document.
    bucket:     Supabase Storage bucket name (supabase backend only).
    timeout_s:  Per-round-trip timeout applied by the backends.
    """

    backend: str = "auto"
    root: str = "~/.gatekeeper/files"
    emails_key: str = DEFAULT_EMAILS_KEY
    bucket: str = "gatekeeper"
    timeout_s: float = DEFAULT_STORAGE_TIMEOUT_S


@dataclass
class IdentityConfig:
    """Identity provider (Adobe IMS) configuration."""

    ims_url: str = DEFAULT_IMS_URL
    employee_domain: str = DEFAULT_EMPLOYEE_DOMAIN
    employee_account_type: str = DEFAULT_EMPLOYEE_ACCOUNT_TYPE
    timeout_s: float = DEFAULT_IDENTITY_TIMEOUT_S


@dataclass
class ServerConfig:
    """HTTP binding configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class Config:
    """Root configuration object populated from .gatekeeper/config.yaml.

    All fields have safe defaults — Gatekeeper can start without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    storage: StorageConfig = field(default_factory=StorageConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    greeting_name: str = DEFAULT_GREETING_NAME
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            SystemExit(1): On invalid storage.backend value.
        """
        # ── Storage ───────────────────────────────────────────────────────────
        storage_raw = raw.get("storage") or {}
        backend = storage_raw.get("backend", "auto")
        if backend not in VALID_STORAGE_BACKENDS:
            msg = (
                f"CONFIG ERROR: Invalid storage.backend: '{backend}'. "
                f"Supported values: {sorted(VALID_STORAGE_BACKENDS)}."
            )
            print(msg, file=sys.stderr)
            raise SystemExit(1)
        storage = StorageConfig(
            backend=backend,
            root=storage_raw.get("root", "~/.gatekeeper/files"),
            emails_key=storage_raw.get("emails_key", DEFAULT_EMAILS_KEY),
            bucket=storage_raw.get("bucket", "gatekeeper"),
            timeout_s=float(storage_raw.get("timeout_s", DEFAULT_STORAGE_TIMEOUT_S)),
        )

        # ── Identity ──────────────────────────────────────────────────────────
        identity_raw = raw.get("identity") or {}
        identity = IdentityConfig(
            ims_url=identity_raw.get("ims_url", DEFAULT_IMS_URL),
            employee_domain=identity_raw.get("employee_domain", DEFAULT_EMPLOYEE_DOMAIN),
            employee_account_type=identity_raw.get(
                "employee_account_type", DEFAULT_EMPLOYEE_ACCOUNT_TYPE
            ),
            timeout_s=float(identity_raw.get("timeout_s", DEFAULT_IDENTITY_TIMEOUT_S)),
        )

        # ── Server ────────────────────────────────────────────────────────────
        server_raw = raw.get("server") or {}
        server = ServerConfig(
            host=server_raw.get("host", "127.0.0.1"),
            port=server_raw.get("port", 8080),
        )

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            storage=storage,
            identity=identity,
            server=server,
            greeting_name=raw.get("greeting_name", DEFAULT_GREETING_NAME),
            path=path,
        )


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate Gatekeeper configuration.

    If no file is found at any search path, returns default Config (not an error).
    If a file is found but invalid, writes error to stderr and raises SystemExit(1).
    Environment overrides are applied in both cases.

    Raises:
        SystemExit(1): On YAML parse error, missing ``version`` field, unsupported
                       version, invalid ``storage.backend``, or invalid
                       ``GATEKEEPER_PORT``.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("GATEKEEPER_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    # ── No config file found ─────────────────────────────────────────────────
    if found_path is None:
        logger.info("No config file found — using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    # ── Parse config file ─────────────────────────────────────────────────────
    logger.info("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        msg = (
            f"CONFIG ERROR: Failed to parse {found_path}: {exc}\n"
            "Gatekeeper refuses to start with an invalid config. "
            "Check the YAML syntax and try again."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)
    except OSError as exc:
        msg = f"CONFIG ERROR: Could not read {found_path}: {exc}"
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    if not isinstance(raw, dict):
        if raw is None:
            msg = (
                f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        else:
            msg = (
                f"CONFIG ERROR: {found_path} is not a valid YAML mapping.\n"
                "The config file must be a YAML dictionary at the top level."
            )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    # ── Version validation ────────────────────────────────────────────────────
    version = raw.get("version")
    if version is None:
        msg = (
            f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    if version not in SUPPORTED_VERSIONS:
        msg = (
            f"CONFIG ERROR: Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    config = Config.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    if config.server.host == "0.0.0.0":
        logger.warning(
            "Gatekeeper is configured to bind on 0.0.0.0 (all interfaces). "
            "Put it behind a gateway that terminates TLS."
        )

    logger.info(
        "Config loaded",
        path=found_path,
        version=config.version,
        storage_backend=config.storage.backend,
        emails_key=config.storage.emails_key,
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Handles:
      GATEKEEPER_PORT       — overrides config.server.port (must be an integer)
      GATEKEEPER_EMAILS_KEY — overrides config.storage.emails_key

    Raises:
        SystemExit(1): If GATEKEEPER_PORT is set but not a valid integer.
    """
    env_port = os.environ.get("GATEKEEPER_PORT")
    if env_port is not None:
        try:
            config.server.port = int(env_port)
        except ValueError:
            msg = (
                f"CONFIG ERROR: GATEKEEPER_PORT environment variable is not a valid "
                f"integer: '{env_port}'"
            )
            print(msg, file=sys.stderr)
            raise SystemExit(1)

    env_key = os.environ.get("GATEKEEPER_EMAILS_KEY")
    if env_key:
        config.storage.emails_key = env_key
