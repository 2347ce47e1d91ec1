"""
Unit Tests for Environment Configuration
========================================
"""

from dataclasses import replace

import pytest

from config.env import (
    ChatMode,
    ChatSettings,
    ConfigurationError,
    Environment,
    InfraSettings,
    parse_chat_mode,
    validate_startup,
)

from tests.conftest import make_settings


class TestChatSettingsFromEnv:

    @pytest.mark.parametrize("raw,mode", [
        ("sql", ChatMode.SQL),
        (" Context ", ChatMode.CONTEXT),
        ("mix", ChatMode.MIX),
        ("bogus", ChatMode.MIX),
        (None, ChatMode.MIX),
    ])
    def test_parse_chat_mode(self, raw, mode):
        assert parse_chat_mode(raw) == mode

    def test_flags_default_off(self, monkeypatch):
        for key in ("CHAT_SHOW_METHOD", "CHAT_SHOW_TIMING", "CHAT_DEBUG", "CHAT_AUTO_ROUTE"):
            monkeypatch.delenv(key, raising=False)
        chat = ChatSettings()
        assert chat.show_method is False
        assert chat.show_timing is False
        assert chat.debug is False
        assert chat.auto_route is False

    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("CHAT_MODE", "sql")
        monkeypatch.setenv("CHAT_SHOW_TIMING", "yes")
        monkeypatch.setenv("CHAT_CONTEXT_GAME_LIMIT", "not-a-number")
        monkeypatch.setenv("CHAT_ENGINE_TIMEOUT_SECONDS", "7.5")
        chat = ChatSettings()
        assert chat.mode == ChatMode.SQL
        assert chat.show_timing is True
        assert chat.context_game_limit == 15
        assert chat.engine_timeout_seconds == 7.5

    def test_allowed_origins_dedupe(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.test, https://b.test,https://a.test,")
        assert InfraSettings().allowed_origins == ["https://a.test", "https://b.test"]


class TestValidateStartup:

    def test_test_environment_never_raises(self):
        base = make_settings()
        current = replace(base, ai=replace(base.ai, openai_api_key=""))
        result = validate_startup(current)
        assert result["environment"] == "test"
        assert any("OPENAI_API_KEY" in w for w in result["warnings"])

    def test_production_requires_credentials(self):
        base = make_settings()
        current = replace(
            base,
            environment=Environment.PRODUCTION,
            data=replace(base.data, supabase_url=""),
        )
        with pytest.raises(ConfigurationError):
            validate_startup(current)

    def test_production_warns_about_dev_user(self):
        current = replace(make_settings(dev_user_id="dev"), environment=Environment.PRODUCTION)
        result = validate_startup(current)
        assert any("DEV_USER_ID" in w for w in result["warnings"])

    @pytest.mark.parametrize("environment", [Environment.PRODUCTION, Environment.STAGING])
    def test_anon_key_required_outside_development(self, environment):
        base = make_settings()
        current = replace(base, environment=environment, data=replace(base.data, supabase_anon_key=""))
        with pytest.raises(ConfigurationError, match="SUPABASE_ANON_KEY"):
            validate_startup(current)

    @pytest.mark.parametrize("environment", [Environment.PRODUCTION, Environment.STAGING])
    def test_jwt_secret_required_outside_development(self, environment):
        base = make_settings()
        current = replace(base, environment=environment, data=replace(base.data, supabase_jwt_secret=""))
        with pytest.raises(ConfigurationError, match="SUPABASE_JWT_SECRET"):
            validate_startup(current)

    def test_missing_anon_key_only_warns_in_test(self):
        base = make_settings()
        current = replace(base, data=replace(base.data, supabase_anon_key=""))
        result = validate_startup(current)
        assert result["errors"] == []
        assert any("SUPABASE_ANON_KEY" in w for w in result["warnings"])
