"""Unit tests for app/config.py — YAML config loading and env overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

import app.config as config_module
from app.config import Config, load_config
from app.constants import DEFAULT_EMAILS_KEY, DEFAULT_GREETING_NAME


@pytest.fixture(autouse=True)
def no_default_paths(monkeypatch: pytest.MonkeyPatch) -> None:
    """Never pick up a developer's .gatekeeper/config.yaml."""
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", [])


def _write(tmp_path: Path, text: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


class TestDefaults:
    def test_no_file_returns_defaults(self) -> None:
        config = load_config()

        assert config.path is None
        assert config.version == 1
        assert config.storage.backend == "auto"
        assert config.storage.emails_key == DEFAULT_EMAILS_KEY
        assert config.identity.employee_domain == "adobe.com"
        assert config.identity.employee_account_type == "type3"
        assert config.server.port == 8080
        assert config.greeting_name == DEFAULT_GREETING_NAME

    def test_missing_explicit_path_falls_back_to_defaults(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"))
        assert config.path is None


class TestLoadFile:
    def test_full_file(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
version: 1
greeting_name: Test Indexer
storage:
  backend: local
  root: /srv/gatekeeper
  emails_key: lists/emails.json
  bucket: allowlists
  timeout_s: 2
identity:
  ims_url: https://ims.example
  employee_domain: corp.example
  employee_account_type: staff
  timeout_s: 3.5
server:
  host: 0.0.0.0
  port: 9000
""",
        )

        config = load_config(path)

        assert config.path == path
        assert config.greeting_name == "Test Indexer"
        assert config.storage.backend == "local"
        assert config.storage.root == "/srv/gatekeeper"
        assert config.storage.emails_key == "lists/emails.json"
        assert config.storage.bucket == "allowlists"
        assert config.storage.timeout_s == 2.0
        assert config.identity.ims_url == "https://ims.example"
        assert config.identity.employee_domain == "corp.example"
        assert config.identity.employee_account_type == "staff"
        assert config.identity.timeout_s == 3.5
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 9000

    def test_partial_file_keeps_defaults(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, "version: 1\nstorage:\n  backend: memory\n"))

        assert config.storage.backend == "memory"
        assert config.storage.emails_key == DEFAULT_EMAILS_KEY
        assert config.identity.employee_domain == "adobe.com"

    def test_env_config_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write(tmp_path, "version: 1\ngreeting_name: From Env\n")
        monkeypatch.setenv("GATEKEEPER_CONFIG", path)

        assert load_config().greeting_name == "From Env"

    def test_explicit_path_wins_over_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("version: 1\ngreeting_name: Explicit\n")
        monkeypatch.setenv("GATEKEEPER_CONFIG", _write(tmp_path, "version: 1\ngreeting_name: Env\n"))

        assert load_config(str(explicit)).greeting_name == "Explicit"


class TestInvalidConfig:
    @pytest.mark.parametrize(
        "text",
        [
            "version: [1\n",          # YAML syntax error
            "",                        # empty document
            "- version: 1\n",          # not a mapping
            "storage: {}\n",           # no version
            "version: 2\n",            # unsupported version
            "version: 1\nstorage:\n  backend: s3\n",
        ],
    )
    def test_exits(self, tmp_path: Path, text: str) -> None:
        with pytest.raises(SystemExit) as exc_info:
            load_config(_write(tmp_path, text))
        assert exc_info.value.code == 1

    def test_error_written_to_stderr(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit):
            load_config(_write(tmp_path, "version: 1\nstorage:\n  backend: s3\n"))
        assert "Invalid storage.backend" in capsys.readouterr().err


class TestEnvOverrides:
    def test_port_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GATEKEEPER_PORT", "9999")
        assert load_config().server.port == 9999

    def test_port_override_beats_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GATEKEEPER_PORT", "7000")
        config = load_config(_write(tmp_path, "version: 1\nserver:\n  port: 9000\n"))
        assert config.server.port == 7000

    def test_invalid_port_exits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GATEKEEPER_PORT", "http")
        with pytest.raises(SystemExit):
            load_config()

    def test_emails_key_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GATEKEEPER_EMAILS_KEY", "other/emails.json")
        assert load_config().storage.emails_key == "other/emails.json"

    def test_empty_emails_key_is_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GATEKEEPER_EMAILS_KEY", "")
        assert load_config().storage.emails_key == DEFAULT_EMAILS_KEY


class TestFromDict:
    def test_unknown_keys_ignored(self) -> None:
        config = Config.from_dict({"version": 1, "proxy": {"upstream": "x"}})
        assert config.storage.backend == "auto"

    def test_null_sections_use_defaults(self) -> None:
        config = Config.from_dict({"version": 1, "storage": None, "identity": None})
        assert config.storage.emails_key == DEFAULT_EMAILS_KEY
        assert config.identity.employee_account_type == "type3"
