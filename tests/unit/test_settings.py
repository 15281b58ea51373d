"""Unit tests for settings singleton"""

import pytest
from deskview.common.config import ConfigLoader
from deskview.common.settings import Settings, settings


class TestSettingsSingleton:
    """Test Settings singleton pattern"""

    def test_singleton_same_instance(self, reset_settings):
        """Test that Settings() returns same instance"""
        s1 = Settings()
        s2 = Settings()
        assert s1 is s2

    def test_global_settings_is_singleton(self, reset_settings):
        """Test that global 'settings' is the singleton"""
        s = Settings()
        assert settings is s


class TestSettingsConstants:
    """Test that all constants are accessible"""

    def test_protocol_constants(self):
        """Test wire-protocol defaults"""
        assert settings.DEFAULT_BOUNDARY == "--boundary"
        assert settings.DEFAULT_PORT == 8080
        assert settings.DEFAULT_FRAME_INTERVAL_MS == 50
        assert settings.INTERVAL_DIVISOR == 1000.0

    def test_thread_constants(self):
        """Test server thread timing constants exist and are positive"""
        assert settings.ACCEPT_POLL_SEC > 0
        assert settings.SESSION_POLL_SEC > 0
        assert settings.IDLE_POLL_SEC > 0
        assert settings.JOIN_TIMEOUT_SEC > 0

    def test_host_constants(self):
        """Test the client-count poll period"""
        assert settings.STATUS_POLL_MS == 200


class TestSettingsInitialization:
    """Test settings initialization with config"""

    def test_initialize_with_config(self, reset_settings):
        """Test settings can be initialized with config"""
        config = ConfigLoader.config_parse({"server": {"port": 9191}})
        settings.initialize(config)

        assert settings.config is config
        assert settings.config.server.port == 9191

    def test_config_property_before_init_raises(self, reset_settings):
        """Test accessing config before initialization raises error"""
        with pytest.raises(RuntimeError, match="Settings not initialized"):
            _ = settings.config
