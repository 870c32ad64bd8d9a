"""
Unit tests for the pre-flight safety guard.
"""

import pytest

from order_datagen.config.models import SafetyConfig
from order_datagen.config.settings import ENV_ENABLED, ENV_ENVIRONMENT
from order_datagen.safety import SafetyGuard
from order_datagen.shared.exceptions import SafetyViolation
from order_datagen.storage import InMemoryStore


def _checks(result):
    return {failure.check for failure in result.failures}


class TestEnvironment:
    def test_test_environment_passes(self):
        result = SafetyGuard().run_all_checks()
        assert result.passed
        assert result.environment == "test"
        assert result.target_schema == "mock_data"

    def test_production_rejected(self, monkeypatch):
        monkeypatch.setenv(ENV_ENVIRONMENT, "production")
        result = SafetyGuard().run_all_checks()
        assert not result.passed
        assert {"environment", "allowed_environments"} <= _checks(result)

    def test_production_rejected_even_when_allowed(self, monkeypatch):
        monkeypatch.setenv(ENV_ENVIRONMENT, "production")
        config = SafetyConfig(
            allowed_environments=["production"], block_production_writes=False
        )
        result = SafetyGuard(config).run_all_checks()
        assert _checks(result) == {"environment"}

    def test_prod_like_names(self, monkeypatch):
        monkeypatch.setenv(ENV_ENVIRONMENT, "prod-eu")
        config = SafetyConfig(allowed_environments=["prod-eu"])
        assert _checks(SafetyGuard(config).run_all_checks()) == {"environment"}

        relaxed = SafetyConfig(allowed_environments=["prod-eu"], block_production_writes=False)
        assert SafetyGuard(relaxed).run_all_checks().passed

    def test_environment_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv(ENV_ENVIRONMENT, " Production ")
        assert "environment" in _checks(SafetyGuard().run_all_checks())

    def test_not_allowed(self, monkeypatch):
        monkeypatch.setenv(ENV_ENVIRONMENT, "qa")
        result = SafetyGuard().run_all_checks()
        assert _checks(result) == {"allowed_environments"}
        assert '"qa"' in result.failures[0].reason

    @pytest.mark.parametrize("value", [None, "false", "1", "yes"])
    def test_explicit_enable(self, monkeypatch, value):
        if value is None:
            monkeypatch.delenv(ENV_ENABLED)
        else:
            monkeypatch.setenv(ENV_ENABLED, value)
        assert _checks(SafetyGuard().run_all_checks()) == {"explicit_enable"}

    def test_explicit_enable_can_be_waived(self, monkeypatch):
        monkeypatch.delenv(ENV_ENABLED)
        assert SafetyGuard(SafetyConfig(require_explicit_enable=False)).run_all_checks().passed


class TestSchemaIsolation:
    @pytest.mark.parametrize("schema", ["public", "PUBLIC", "Public"])
    def test_protected_schema(self, schema):
        failures = SafetyGuard(target_schema=schema).validate_schema_isolation()
        assert len(failures) == 1
        assert "protected" in failures[0].reason

    def test_mismatched_schema(self):
        failures = SafetyGuard().validate_schema_isolation("sandbox")
        assert len(failures) == 1
        assert "does not match" in failures[0].reason

    def test_configured_schema(self):
        config = SafetyConfig(target_schema="sandbox")
        assert SafetyGuard(config).validate_schema_isolation() == []


class TestRecordLimit:
    def test_within_limit(self):
        assert SafetyGuard().validate_record_limit("orders", 1_000_000) == []

    def test_over_limit(self):
        config = SafetyConfig(max_records_per_entity=1000)
        result = SafetyGuard(config).run_all_checks({"orders": 1001, "users": 10})
        assert not result.passed
        assert _checks(result) == {"record_limit"}
        assert '"orders" (1001)' in result.failures[0].reason


class TestClientGate:
    def test_safe_client(self):
        client = SafetyGuard().get_safe_client(lambda schema: InMemoryStore(schema))
        assert isinstance(client, InMemoryStore)
        assert client.schema == "mock_data"

    def test_unsafe_client(self, monkeypatch):
        monkeypatch.setenv(ENV_ENVIRONMENT, "production")
        factory_calls = []
        with pytest.raises(SafetyViolation) as exc_info:
            SafetyGuard().get_safe_client(factory_calls.append)
        assert factory_calls == []
        assert exc_info.value.failures
        assert "production" in str(exc_info.value)

    def test_prevent_production_writes(self, monkeypatch, caplog):
        SafetyGuard().prevent_production_writes()

        monkeypatch.setenv(ENV_ENVIRONMENT, "production")
        with pytest.raises(SafetyViolation, match="Writes blocked"):
            SafetyGuard().prevent_production_writes()
        assert "blocked" in caplog.text
