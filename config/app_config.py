"""
Prompt Studio configuration.

Settings are grouped in dataclass sections and aggregated by AppConfig.
Secrets come from `.streamlit/secrets.toml` when Streamlit provides them and
from the process environment otherwise.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import streamlit as st
import os
import warnings
from pathlib import Path

ENHANCEMENT_BACKENDS = ("database", "local_cache")

# Environment variable -> (section, attribute)
STORAGE_ENV_OVERRIDES = {
    "PROMPT_STUDIO_DB_PATH": ("storage", "db_path"),
    "PROMPT_STUDIO_ENHANCEMENT_BACKEND": ("storage", "enhancement_backend"),
    "PROMPT_STUDIO_CACHE_DIR": ("storage", "local_cache_dir"),
}


def _read_secret(name: str) -> str:
    """Secret from Streamlit, falling back to the environment"""
    # Tests configure keys through the environment only
    if os.getenv("PYTEST_CURRENT_TEST") is None:
        try:
            value = st.secrets.get(name)
        except Exception:
            value = None
        if value:
            return str(value)
    return os.getenv(name, "")


@dataclass
class APIConfig:
    """Credentials for the OpenAI API"""
    openai_api_key: str = ""
    openai_base_url: str = ""

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        return cls(
            openai_api_key=_read_secret("OPENAI_API_KEY"),
            openai_base_url=_read_secret("OPENAI_BASE_URL"),
        )

    @classmethod
    def from_env(cls) -> 'APIConfig':
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_base_url=os.getenv("OPENAI_BASE_URL", ""),
        )


@dataclass
class LLMConfig:
    """Assistant model used for chat replies"""
    model_name: str = "gpt-4o-mini"
    temperature: float = 0.5
    max_tokens: int = 1000
    system_prompt: str = "You are a helpful assistant. Answer clearly and concisely."
    history_limit: int = 20  # prior messages sent with each request

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_name": self.model_name,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


@dataclass
class EnhancerConfig:
    """Prompt enhancement service configuration"""
    model_name: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 800
    provider_label: str = ""
    instructions: str = (
        "You rewrite prompts so that a language model can answer them well. "
        "Make the user's prompt specific, give it context, a clear goal, "
        "constraints and the expected output format. "
        "Reply with the improved prompt only."
    )

    def get_provider_label(self) -> str:
        """Label stored with each enhancement"""
        return self.provider_label or f"openai:{self.model_name}"


@dataclass
class StreamingConfig:
    """Pacing of the character-by-character reveal"""
    reveal_delay: float = 0.02  # seconds per character


@dataclass
class StorageConfig:
    """Persistence configuration"""
    db_path: str = "data/prompt_studio.db"
    enhancement_backend: str = "database"  # one of ENHANCEMENT_BACKENDS
    local_cache_dir: str = "data/cache"
    reconcile_window_seconds: float = 300.0

    def uses_local_cache(self) -> bool:
        """Whether enhancement history runs in degraded (local cache) mode"""
        return self.enhancement_backend == "local_cache"


@dataclass
class UIConfig:
    """Texts and sizes used by the Streamlit pages"""
    app_title: str = "Prompt Studio"
    chat_placeholder: str = "Type your message..."
    enhancer_placeholder: str = "Paste your messy prompt here... we'll fix it for you"
    empty_chat_message: str = "Start a conversation with your AI assistant!"
    history_preview_length: int = 30


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = True
    log_file: str = "logs/app.log"


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    enhancer: EnhancerConfig = field(default_factory=EnhancerConfig)
    streaming: StreamingConfig = field(default_factory=StreamingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Defaults, then secrets, then environment overrides"""
        config = cls()
        config.api = APIConfig.from_secrets()
        config.apply_env_overrides()

        if config.environment == "production":
            config.debug = False
            config.logging.level = "WARNING"
        elif config.environment == "development":
            config.debug = True
            config.logging.level = "DEBUG"

        return config

    def apply_env_overrides(self) -> None:
        for variable, (section, attribute) in STORAGE_ENV_OVERRIDES.items():
            value = os.getenv(variable)
            if value:
                setattr(getattr(self, section), attribute, value)

    def validate(self) -> List[str]:
        """
        Check the settings and create the directories they point to.

        Returns:
            Human-readable problems; empty when the configuration is usable
        """
        problems = []

        if not self.api.openai_api_key:
            problems.append("OpenAI API key is missing, assistant replies will be simulated")

        if self.storage.enhancement_backend not in ENHANCEMENT_BACKENDS:
            problems.append(f"Unknown enhancement backend '{self.storage.enhancement_backend}'")

        if self.streaming.reveal_delay < 0:
            problems.append("Reveal delay must not be negative")

        if self.storage.reconcile_window_seconds <= 0:
            problems.append("Reconcile window must be positive")

        directories = [Path(self.storage.db_path).parent]
        if self.logging.enable_file_logging:
            directories.append(Path(self.logging.log_file).parent)
        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

        return problems


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance, loading it on first use"""
    global _config
    if _config is None:
        from config.environments import get_environment_config
        _config = get_environment_config()
        for problem in _config.validate():
            warnings.warn(f"Configuration error: {problem}")
    return _config


def reload_config() -> AppConfig:
    """Drop the cached configuration and load it again"""
    global _config
    _config = None
    return get_config()


def get_openai_api_key() -> str:
    return get_config().api.openai_api_key
