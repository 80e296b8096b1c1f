"""Tests for environment configuration."""

from unittest.mock import patch

from snowscribe.config import AppConfig


class TestAppConfig:
    """Tests for reading configuration from the environment."""

    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            config = AppConfig.from_env()

        assert config.ai_config_path is None
        assert config.starting_credits == 100.0
        assert config.session_timeout_minutes == 60
        assert config.orchestrator.min_credit_balance == 0.0
        assert config.orchestrator.fallback_charge == 1.0

    def test_from_env(self):
        env = {
            "SNOWSCRIBE_AI_CONFIG": "/etc/snowscribe/ai.json",
            "SNOWSCRIBE_STARTING_CREDITS": "25",
            "SNOWSCRIBE_MIN_CREDIT_BALANCE": "0.5",
            "SNOWSCRIBE_SESSION_TIMEOUT_MINUTES": "15",
        }
        with patch.dict("os.environ", env, clear=True):
            config = AppConfig.from_env()

        assert config.ai_config_path == "/etc/snowscribe/ai.json"
        assert config.starting_credits == 25.0
        assert config.orchestrator.min_credit_balance == 0.5
        assert config.session_timeout_minutes == 15

    def test_blank_values_use_defaults(self):
        with patch.dict("os.environ", {"SNOWSCRIBE_STARTING_CREDITS": " "}, clear=True):
            assert AppConfig.from_env().starting_credits == 100.0
