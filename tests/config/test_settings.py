"""
Configuration tests: YAML sets, the cached settings store, and the module
configs built from both.
"""

from decimal import Decimal

import pytest

from rental_config import get_active_configuration, get_active_settings
from rental_config.loader import compute_checksum, parse_configuration_set, parse_engine_settings
from rental_config.schema import EngineSettings
from rental_kernel.exceptions import InvalidSettingError
from rental_kernel.services.settings_service import SettingsService
from rental_modules.collections.config import CollectionConfig
from rental_modules.contracts.config import ContractConfig


class TestYamlSets:

    def test_default_set_loads(self):
        config_set = get_active_configuration()
        assert config_set.config_id == "rental-default"
        assert config_set.settings == EngineSettings()
        assert config_set.settings.late_fee_daily_rate == Decimal("0.05")

    def test_custom_file(self, tmp_path):
        path = tmp_path / "strict.yaml"
        path.write_text("config_id: strict\nsettings:\n  payment_due_days: 3\n")
        assert get_active_settings(path).payment_due_days == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_settings(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        "data, key",
        [
            ({"payment_due_dayz": 7}, "payment_due_dayz"),
            ({"payment_due_days": -1}, "payment_due_days"),
            ({"payment_due_days": True}, "payment_due_days"),
            ({"payment_due_days": "soon"}, "payment_due_days"),
            ({"expiring_window_days": 0}, "expiring_window_days"),
            ({"late_fee_daily_rate": "-0.1"}, "late_fee_daily_rate"),
            ({"late_fee_daily_rate": "abc"}, "late_fee_daily_rate"),
        ],
    )
    def test_invalid_values_rejected(self, data, key):
        with pytest.raises(InvalidSettingError) as exc_info:
            parse_engine_settings(data)
        assert exc_info.value.key == key
        assert exc_info.value.code == "INVALID_SETTING"

    def test_checksum_deterministic(self):
        a = parse_configuration_set({"config_id": "a", "settings": {"payment_due_days": "7"}})
        b = parse_configuration_set({"config_id": "b", "settings": {"payment_due_days": 7}})
        assert a.checksum == b.checksum == compute_checksum(EngineSettings())
        assert compute_checksum(EngineSettings(payment_due_days=5)) != a.checksum


class TestSettingsService:

    @pytest.fixture
    def store(self, session, deterministic_clock):
        return SettingsService(session, deterministic_clock, ttl_seconds=60)

    def test_get_default_when_missing(self, store):
        assert store.get("payment_due_days") is None
        assert store.get("payment_due_days", "7") == "7"

    def test_set_then_get(self, store):
        store.set("payment_due_days", 10)
        assert store.get("payment_due_days") == "10"
        assert store.get_int("payment_due_days", 7) == 10

    def test_get_many(self, store):
        store.set_many({"a": "1", "b": "2"})
        assert store.get_many(["a", "b", "c"]) == {"a": "1", "b": "2", "c": None}
        assert store.get_many({"c": "fallback"}) == {"c": "fallback"}

    def test_forget(self, store):
        store.set("a", "1")
        assert store.forget("a") is True
        assert store.get("a") is None
        assert store.forget("a") is False

    def test_cache_expires_on_clock(self, session, store, deterministic_clock):
        other = SettingsService(session, deterministic_clock, ttl_seconds=60)
        assert store.get("payment_due_days") is None

        other.set("payment_due_days", "3")
        assert store.get("payment_due_days") is None

        deterministic_clock.advance(61)
        assert store.get("payment_due_days") == "3"

    def test_typed_accessors_reject_garbage(self, store):
        store.set("payment_due_days", "seven")
        store.set("late_fee_daily_rate", "a lot")
        with pytest.raises(InvalidSettingError):
            store.get_int("payment_due_days", 7)
        with pytest.raises(InvalidSettingError):
            store.get_decimal("late_fee_daily_rate", Decimal("0.05"))

    def test_negative_ttl_rejected(self, session):
        with pytest.raises(InvalidSettingError):
            SettingsService(session, ttl_seconds=-1)


class TestModuleConfigs:

    def test_collection_config_from_yaml_defaults(self):
        config = CollectionConfig.from_settings(EngineSettings())
        assert config == CollectionConfig.with_defaults()

    def test_store_overrides_yaml(self, session, deterministic_clock):
        store = SettingsService(session, deterministic_clock)
        store.set("payment_due_days", "3")
        store.set("late_fee_daily_rate", "0.10")
        store.set("expiring_window_days", "45")

        collections = CollectionConfig.from_settings(EngineSettings(), store)
        contracts = ContractConfig.from_settings(EngineSettings(), store)

        assert collections.grace_days == 3
        assert collections.late_fee_daily_rate == Decimal("0.10")
        assert collections.critical_postponement_days == 30
        assert contracts.expiring_window_days == 45
        assert contracts.expiry_warning_days == 7

    def test_out_of_range_override_rejected(self, session, deterministic_clock):
        store = SettingsService(session, deterministic_clock)
        store.set("expiring_window_days", "0")
        with pytest.raises(InvalidSettingError):
            ContractConfig.from_settings(EngineSettings(), store)

    def test_negative_grace_rejected(self):
        with pytest.raises(InvalidSettingError):
            CollectionConfig(grace_days=-1)
