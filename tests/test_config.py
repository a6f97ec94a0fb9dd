"""
Tests for configuration system
"""

import pytest
import os
import tempfile
from pathlib import Path
from config.app_config import (
    AppConfig, APIConfig, LLMConfig, EnhancerConfig, StreamingConfig,
    StorageConfig, UIConfig, get_config, reload_config
)


class TestAPIConfig:
    """Test API configuration"""

    def test_from_secrets_fallback_to_env(self, monkeypatch):
        """Test fallback to environment variables when secrets unavailable"""
        monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
        monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8080/v1")

        config = APIConfig.from_secrets()

        assert config.openai_api_key == "test-openai-key"
        assert config.openai_base_url == "http://localhost:8080/v1"

    def test_from_env_defaults(self, monkeypatch):
        """Test empty values when nothing is configured"""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("OPENAI_BASE_URL", raising=False)

        config = APIConfig.from_env()

        assert config.openai_api_key == ""
        assert config.openai_base_url == ""


class TestLLMConfig:
    """Test LLM configuration"""

    def test_default_values(self):
        """Test default configuration values"""
        config = LLMConfig()

        assert config.model_name == "gpt-4o-mini"
        assert config.temperature == 0.5
        assert config.max_tokens == 1000
        assert config.history_limit == 20

    def test_to_dict(self):
        """Test conversion to dictionary"""
        config = LLMConfig()

        assert config.to_dict() == {
            "model_name": "gpt-4o-mini",
            "temperature": 0.5,
            "max_tokens": 1000
        }


class TestEnhancerConfig:
    """Test prompt enhancer configuration"""

    def test_default_provider_label(self):
        assert EnhancerConfig().get_provider_label() == "openai:gpt-4o-mini"

    def test_custom_provider_label(self):
        config = EnhancerConfig(provider_label="custom")

        assert config.get_provider_label() == "custom"


class TestStorageConfig:
    """Test persistence configuration"""

    def test_defaults(self):
        config = StorageConfig()

        assert config.enhancement_backend == "database"
        assert config.reconcile_window_seconds == 300.0
        assert config.uses_local_cache() is False

    def test_local_cache_mode(self):
        config = StorageConfig(enhancement_backend="local_cache")

        assert config.uses_local_cache() is True


class TestAppConfig:
    """Test main application configuration"""

    def test_default_initialization(self):
        """Test default configuration initialization"""
        config = AppConfig()

        assert isinstance(config.api, APIConfig)
        assert isinstance(config.llm, LLMConfig)
        assert isinstance(config.enhancer, EnhancerConfig)
        assert isinstance(config.streaming, StreamingConfig)
        assert isinstance(config.storage, StorageConfig)
        assert isinstance(config.ui, UIConfig)

    def test_environment_detection(self, monkeypatch):
        """Test environment detection"""
        monkeypatch.setenv("APP_ENV", "production")
        config = AppConfig()
        assert config.environment == "production"

        monkeypatch.setenv("APP_ENV", "development")
        config = AppConfig()
        assert config.environment == "development"

    def test_production_overrides(self, monkeypatch):
        """Test production environment overrides"""
        monkeypatch.setenv("APP_ENV", "production")
        config = AppConfig.load()

        assert config.debug is False
        assert config.logging.level == "WARNING"

    def test_development_overrides(self, monkeypatch):
        """Test development environment overrides"""
        monkeypatch.setenv("APP_ENV", "development")
        config = AppConfig.load()

        assert config.debug is True
        assert config.logging.level == "DEBUG"

    def test_storage_overrides_from_env(self, monkeypatch):
        """Test storage settings taken from environment variables"""
        monkeypatch.setenv("PROMPT_STUDIO_DB_PATH", "/tmp/elsewhere.db")
        monkeypatch.setenv("PROMPT_STUDIO_ENHANCEMENT_BACKEND", "local_cache")

        config = AppConfig.load()

        assert config.storage.db_path == "/tmp/elsewhere.db"
        assert config.storage.uses_local_cache()

    def test_validate_missing_api_key(self):
        """Test validation reports a missing API key"""
        config = AppConfig()
        config.api.openai_api_key = ""
        config.logging.enable_file_logging = False

        with tempfile.TemporaryDirectory() as temp_dir:
            config.storage.db_path = os.path.join(temp_dir, "app.db")
            errors = config.validate()

        assert "OpenAI API key is missing, assistant replies will be simulated" in errors

    def test_validate_bad_values(self):
        """Test validation of backend and timing settings"""
        config = AppConfig()
        config.api.openai_api_key = "key"
        config.logging.enable_file_logging = False
        config.storage.enhancement_backend = "redis"
        config.streaming.reveal_delay = -1
        config.storage.reconcile_window_seconds = 0

        with tempfile.TemporaryDirectory() as temp_dir:
            config.storage.db_path = os.path.join(temp_dir, "app.db")
            errors = config.validate()

        assert len(errors) == 3
        assert "Unknown enhancement backend 'redis'" in errors

    def test_validate_creates_directories(self):
        """Test validation creates necessary directories"""
        with tempfile.TemporaryDirectory() as temp_dir:
            config = AppConfig()
            config.storage.db_path = os.path.join(temp_dir, "subdir", "test.db")
            config.logging.log_file = os.path.join(temp_dir, "logs", "test.log")
            config.logging.enable_file_logging = True

            config.validate()

            assert Path(temp_dir, "subdir").exists()
            assert Path(temp_dir, "logs").exists()


class TestConfigSingleton:
    """Test configuration singleton behavior"""

    def test_get_config_singleton(self):
        """Test that get_config returns the same instance"""
        config1 = get_config()
        config2 = get_config()

        assert config1 is config2

    def test_reload_config(self):
        """Test configuration reloading"""
        config1 = get_config()
        config2 = reload_config()

        assert config1 is not config2
        assert isinstance(config2, AppConfig)

    def test_get_openai_api_key(self, monkeypatch):
        """Test the API key accessor"""
        from config.app_config import get_openai_api_key

        monkeypatch.setenv("OPENAI_API_KEY", "test-key")
        reload_config()

        assert get_openai_api_key() == "test-key"


if __name__ == "__main__":
    pytest.main([__file__])
