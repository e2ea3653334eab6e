"""Unit tests for EngineConfigStore and Settings."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from forexai.application.state.engine_config_store import EngineConfigStore
from forexai.domain.exceptions.domain_errors import ConfigValidationError
from forexai.shared.config.settings import EngineConfig, Settings


class TestEngineConfigUpdate:

    def test_defaults(self):
        cfg = EngineConfigStore().get()
        assert cfg.confidence_threshold == 0.75
        assert cfg.auto_trade_confidence_threshold == 0.8
        assert cfg.candle_sampling_interval == 5
        assert cfg.min_candles == 50
        assert cfg.tier_cap("free") == 0
        assert cfg.tier_cap("premium") == -1
        assert cfg.reconnect_delay_seconds == 5.0

    def test_partial_update(self):
        store = EngineConfigStore()
        updated = store.update({"confidence_threshold": 0.8, "candle_sampling_interval": 3})

        assert updated.confidence_threshold == 0.8
        assert updated.candle_sampling_interval == 3
        assert store.get().rsi_weight == 2.0
        assert store.decision_config().confidence_threshold == 0.8

    @pytest.mark.parametrize("payload", [
        {"confidence_threshold": 2.0},
        {"stop_loss_atr_multiplier": 0.5},
        {"min_candles": 10},
        {"candle_sampling_interval": 0},
        {"rsi_overbought": 20.0},
        {"daily_trade_caps": {"gold": 5}},
        {"daily_trade_caps": {"basic": -3}},
        {"unknown_field": 1},
        {"confidence_threshold": "high"},
    ])
    def test_invalid_payload_leaves_config_unchanged(self, payload):
        store = EngineConfigStore()
        before = store.get()

        with pytest.raises(ConfigValidationError) as exc_info:
            store.update(payload)

        assert store.get() is before
        assert exc_info.value.errors

    def test_non_object_payload(self):
        store = EngineConfigStore()
        with pytest.raises(ConfigValidationError):
            store.update(["confidence_threshold", 0.8])

    def test_mixed_valid_and_invalid_is_rejected_whole(self):
        store = EngineConfigStore()
        with pytest.raises(ConfigValidationError):
            store.update({"confidence_threshold": 0.9, "min_candles": 1})
        assert store.get().confidence_threshold == 0.75

    def test_risk_projection(self):
        store = EngineConfigStore(EngineConfig(take_profit_atr_multiplier=4.0))
        assert store.risk_config().take_profit_atr_multiplier == 4.0


class TestSettings:

    def test_engine_config_from_environment(self, monkeypatch):
        monkeypatch.setenv("CONFIDENCE_THRESHOLD", "0.85")
        monkeypatch.setenv("MAX_RECONNECT_ATTEMPTS", "2")
        cfg = Settings().engine_config()
        assert cfg.confidence_threshold == 0.85
        assert cfg.max_reconnect_attempts == 2

    def test_invalid_environment_value_fails_fast(self, monkeypatch):
        monkeypatch.setenv("CONFIDENCE_THRESHOLD", "3")
        with pytest.raises(PydanticValidationError):
            Settings().engine_config()
