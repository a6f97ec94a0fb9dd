"""
Production environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig, APIConfig


@dataclass
class ProductionConfig(AppConfig):
    """Production environment configuration"""

    def __post_init__(self):
        self.environment = "production"
        self.debug = False

        # Production logging - less verbose, focus on errors
        self.logging.level = "INFO"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/prod-app.log"

        self.ui.app_title = "✨ Prompt Studio"

        # More conservative model settings
        self.llm.temperature = 0.3
        self.enhancer.temperature = 0.2

        self.storage.enhancement_backend = "database"


def get_production_config() -> ProductionConfig:
    """Get production-specific configuration"""
    config = ProductionConfig()
    config.api = APIConfig.from_secrets()
    config.apply_env_overrides()
    return config
