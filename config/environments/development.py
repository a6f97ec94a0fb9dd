"""
Development environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig, APIConfig


@dataclass
class DevelopmentConfig(AppConfig):
    """Development environment configuration"""

    def __post_init__(self):
        self.environment = "development"
        self.debug = True

        # More verbose logging in development
        self.logging.level = "DEBUG"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/dev-app.log"

        self.ui.app_title = "🧪 Prompt Studio (DEV)"

        # Local files only, nothing shared with a deployed instance
        self.storage.db_path = "data/dev-prompt_studio.db"
        self.storage.local_cache_dir = "data/dev-cache"

        # Faster reveal so manual testing does not drag
        self.streaming.reveal_delay = 0.005


def get_development_config() -> DevelopmentConfig:
    """Get development-specific configuration"""
    config = DevelopmentConfig()
    config.api = APIConfig.from_secrets()
    config.apply_env_overrides()
    return config
