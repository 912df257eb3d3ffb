from __future__ import annotations

import pytest

from kasir_client_sdk.config import ConfigError, load_config

_ENV_KEYS = (
    "KASIR_ENV",
    "KASIR_API_BASE_URL",
    "KASIR_API_BASE_URL_DEV",
    "KASIR_API_BASE_URL_STAGING",
    "KASIR_RECEIPT_PREFIX",
    "KASIR_API_KEY",
    "KASIR_VERIFY_SSL",
    "KASIR_TELEMETRY_ENABLED",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # load_dotenv writes straight to os.environ; registering each key with
    # monkeypatch first makes teardown restore the pre-test state.
    for key in _ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_load_config_requires_base_url(tmp_path) -> None:
    with pytest.raises(ConfigError, match="KASIR_API_BASE_URL"):
        load_config(str(tmp_path / "missing.env"))


def test_load_config_profile(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KASIR_ENV", "staging")
    monkeypatch.setenv("KASIR_API_BASE_URL_STAGING", "https://staging.example.com/")
    cfg = load_config()
    assert cfg.api_base_url == "https://staging.example.com"
    assert cfg.env_name == "staging"
    assert cfg.receipt_prefix == "BYJ"
    assert cfg.photo_bucket == "stock-photos"
    assert cfg.verify_ssl is True
    assert cfg.telemetry_enabled is False


def test_load_config_reads_env_file(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "KASIR_API_BASE_URL=https://pos.example.com\nKASIR_API_KEY=anon\nKASIR_RECEIPT_PREFIX=kas\n",
        encoding="utf-8",
    )
    cfg = load_config(str(env_file))
    assert cfg.api_base_url == "https://pos.example.com"
    assert cfg.api_key == "anon"
    assert cfg.receipt_prefix == "KAS"


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("KASIR_TIMEOUT_SECONDS", "0"),
        ("KASIR_CONNECT_TIMEOUT_SECONDS", "0"),
        ("KASIR_READ_TIMEOUT_SECONDS", "0"),
        ("KASIR_RETRIES", "-1"),
        ("KASIR_RETRY_BACKOFF_SECONDS", "-0.1"),
        ("KASIR_MAX_CONNECTIONS", "0"),
        ("KASIR_RECEIPT_PREFIX", "BY-J"),
    ],
)
def test_load_config_rejects_invalid_ranges(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv("KASIR_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError, match=key):
        load_config()


@pytest.mark.parametrize("key", ["KASIR_TIMEOUT_SECONDS", "KASIR_RETRIES", "KASIR_MAX_CONNECTIONS"])
def test_load_config_rejects_invalid_types(monkeypatch: pytest.MonkeyPatch, key: str) -> None:
    monkeypatch.setenv("KASIR_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(key, "abc")

    with pytest.raises(ConfigError, match=key):
        load_config()
