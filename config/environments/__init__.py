"""
Environment-specific configurations for Prompt Studio
"""

import os
from config.app_config import AppConfig


def get_environment_config() -> AppConfig:
    """
    Get configuration for the environment named by APP_ENV

    - 'development' (default) -> DevelopmentConfig
    - 'production' -> ProductionConfig
    - anything else -> AppConfig.load()
    """
    env = os.getenv("APP_ENV", "development").lower()

    if env == "development":
        from .development import get_development_config
        return get_development_config()
    if env == "production":
        from .production import get_production_config
        return get_production_config()

    return AppConfig.load()
