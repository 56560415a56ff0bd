"""Tests for classifier_sdk.config.

Covers:
- Default values
- Environment variable loading (monkeypatch, CLASSIFIER_ prefix)
- Init kwargs override the environment
- Field validation wrapped in ConfigValidationError by load_config
- Frozen immutability
- Millisecond to second helpers
"""

from __future__ import annotations

import os

import pytest
from pydantic import ValidationError

from classifier_sdk.config import DEFAULT_GRPC_ADDRESS, ClassifierConfig, load_config
from classifier_sdk.exceptions import ClassifierSdkError, ConfigValidationError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CLASSIFIER_* variables from the outer shell out of these tests."""
    for key in list(os.environ):
        if key.startswith("CLASSIFIER_"):
            monkeypatch.delenv(key)


class TestDefaults:
    """Verify default values."""

    def test_service_defaults(self) -> None:
        cfg = ClassifierConfig(_env_file=None)
        assert cfg.grpc_address == DEFAULT_GRPC_ADDRESS
        assert cfg.deployment_id == ""
        assert cfg.affiliate == ""
        assert cfg.heartbeat_interval_ms == 10_000.0

    def test_auth_defaults(self) -> None:
        cfg = ClassifierConfig(_env_file=None)
        assert cfg.oauth_scope == "manage:classify"
        assert cfg.oauth_audience == "crisp-athena-live"
        assert cfg.oauth_auto_refresh is True
        assert cfg.oauth_client_id == ""

    def test_transport_and_logging_defaults(self) -> None:
        cfg = ClassifierConfig(_env_file=None)
        assert cfg.grpc_insecure is False
        assert cfg.grpc_timeout_ms == 30_000.0
        assert cfg.log_level == "summary"
        assert cfg.diagnostic_mode is False

    def test_seconds_helpers(self) -> None:
        cfg = ClassifierConfig(_env_file=None, heartbeat_interval_ms=250, grpc_timeout_ms=1500)
        assert cfg.heartbeat_interval_s == pytest.approx(0.25)
        assert cfg.grpc_timeout_s == pytest.approx(1.5)


class TestEnvironment:
    """Environment variable loading."""

    def test_env_vars_loaded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLASSIFIER_DEPLOYMENT_ID", "deploy-env")
        monkeypatch.setenv("CLASSIFIER_AFFILIATE", "acme")
        monkeypatch.setenv("CLASSIFIER_HEARTBEAT_INTERVAL_MS", "2500")
        monkeypatch.setenv("CLASSIFIER_GRPC_INSECURE", "true")

        cfg = ClassifierConfig(_env_file=None)

        assert cfg.deployment_id == "deploy-env"
        assert cfg.affiliate == "acme"
        assert cfg.heartbeat_interval_ms == 2500.0
        assert cfg.grpc_insecure is True

    def test_kwargs_override_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLASSIFIER_DEPLOYMENT_ID", "deploy-env")
        cfg = ClassifierConfig(_env_file=None, deployment_id="deploy-kwarg")
        assert cfg.deployment_id == "deploy-kwarg"

    def test_unknown_env_vars_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLASSIFIER_NOT_A_FIELD", "x")
        ClassifierConfig(_env_file=None)

    def test_load_config_reads_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLASSIFIER_LOG_LEVEL", "full")
        assert load_config(_env_file=None).log_level == "full"


class TestValidation:
    """Field validation."""

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("heartbeat_interval_ms", 0),
            ("heartbeat_interval_ms", -5),
            ("grpc_timeout_ms", 0),
            ("log_level", "verbose"),
        ],
    )
    def test_invalid_values_rejected(self, field: str, value: object) -> None:
        with pytest.raises(ValidationError):
            ClassifierConfig(_env_file=None, **{field: value})

    def test_load_config_wraps_validation_error(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(_env_file=None, log_level="verbose")
        assert isinstance(exc_info.value, ClassifierSdkError)
        assert "log_level" in str(exc_info.value)

    def test_bad_env_value_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLASSIFIER_HEARTBEAT_INTERVAL_MS", "soon")
        with pytest.raises(ConfigValidationError):
            load_config(_env_file=None)


class TestFrozen:
    """Immutability after construction."""

    def test_assignment_rejected(self) -> None:
        cfg = ClassifierConfig(_env_file=None)
        with pytest.raises(ValidationError):
            cfg.deployment_id = "changed"  # type: ignore[misc]
