"""
Test environment-specific configurations
"""

import os
import pytest
from config.environments import get_environment_config
from config.environments.development import get_development_config
from config.environments.production import get_production_config


class TestEnvironmentConfigs:
    """Test environment-specific configuration loading"""

    def test_development_config(self):
        """Test development configuration"""
        config = get_development_config()

        assert config.environment == "development"
        assert config.debug == True
        assert config.logging.level == "DEBUG"
        assert "DEV" in config.ui.app_title
        assert config.storage.db_path == "data/dev-prompt_studio.db"
        assert config.streaming.reveal_delay < 0.02

    def test_production_config(self):
        """Test production configuration"""
        config = get_production_config()

        assert config.environment == "production"
        assert config.debug == False
        assert config.logging.level == "INFO"
        assert "DEV" not in config.ui.app_title
        assert config.llm.temperature == 0.3
        assert config.enhancer.temperature == 0.2
        assert config.storage.enhancement_backend == "database"

    def test_environment_selection_development(self):
        """Test environment selection for development"""
        original_env = os.environ.get("APP_ENV")
        try:
            os.environ["APP_ENV"] = "development"
            config = get_environment_config()
            assert config.environment == "development"
            assert config.debug == True
        finally:
            if original_env is not None:
                os.environ["APP_ENV"] = original_env
            else:
                os.environ.pop("APP_ENV", None)

    def test_environment_selection_production(self):
        """Test environment selection for production"""
        original_env = os.environ.get("APP_ENV")
        try:
            os.environ["APP_ENV"] = "production"
            config = get_environment_config()
            assert config.environment == "production"
            assert config.debug == False
        finally:
            if original_env is not None:
                os.environ["APP_ENV"] = original_env
            else:
                os.environ.pop("APP_ENV", None)

    def test_default_environment(self):
        """Test default environment when APP_ENV is not set"""
        original_env = os.environ.get("APP_ENV")
        try:
            os.environ.pop("APP_ENV", None)
            config = get_environment_config()
            # Should default to development
            assert config.environment == "development"
        finally:
            if original_env is not None:
                os.environ["APP_ENV"] = original_env

    def test_storage_env_override(self, monkeypatch):
        """Test that environment configs honour storage overrides"""
        monkeypatch.setenv("PROMPT_STUDIO_ENHANCEMENT_BACKEND", "local_cache")

        assert get_development_config().storage.uses_local_cache()
        assert get_production_config().storage.uses_local_cache()

    def test_api_keys_loaded(self, monkeypatch):
        """Test that environment configs pick up the API key"""
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")

        assert get_development_config().api.openai_api_key == "env-key"
        assert get_production_config().api.openai_api_key == "env-key"


if __name__ == "__main__":
    pytest.main([__file__])
