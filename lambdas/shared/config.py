"""Environment configuration for Lambda functions."""
import os
from dataclasses import dataclass

from .exceptions import ConfigurationError

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(key: str, default: bool) -> bool:
    """Read a boolean flag from the environment.

    Raises:
        ConfigurationError: If the value is not a recognised boolean
    """
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got '{raw}'", config_key=key)


def _env_threshold(key: str, default: float) -> float:
    """Read a probability threshold in [0, 1] from the environment.

    Raises:
        ConfigurationError: If the value is not a float in range
    """
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got '{raw}'", config_key=key) from None
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{key} must be between 0 and 1", config_key=key)
    return value


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    table_name: str
    environment: str
    log_level: str
    stream_chat_completions: bool
    use_mocks: bool
    system_prompts_path: str | None
    player_hit_threshold: float
    opponent_hit_threshold: float
    anthropic_api_key_param: str | None

    def __post_init__(self) -> None:
        # Mock responses are never streamed
        if self.use_mocks:
            self.stream_chat_completions = False

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Returns:
            Config instance with values from environment

        Raises:
            ConfigurationError: If required environment variables are missing
                or a value cannot be parsed
        """
        table_name = os.environ.get("TABLE_NAME")
        if not table_name:
            raise ConfigurationError(
                "TABLE_NAME environment variable is required",
                config_key="TABLE_NAME",
            )

        return cls(
            table_name=table_name,
            environment=os.environ.get("ENVIRONMENT", "dev"),
            log_level=os.environ.get("POWERTOOLS_LOG_LEVEL", "INFO"),
            stream_chat_completions=_env_bool("STREAM_CHAT_COMPLETIONS", True),
            use_mocks=_env_bool("USE_MOCKS", False),
            system_prompts_path=os.environ.get("SYSTEM_PROMPTS_PATH") or None,
            player_hit_threshold=_env_threshold("PLAYER_HIT_THRESHOLD", 0.4),
            opponent_hit_threshold=_env_threshold("OPPONENT_HIT_THRESHOLD", 0.6),
            anthropic_api_key_param=os.environ.get("ANTHROPIC_API_KEY_PARAM"),
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "prod"


def get_config() -> Config:
    """Get cached configuration instance.

    Returns:
        Config instance (cached after first call)
    """
    if not hasattr(get_config, "_config"):
        get_config._config = Config.from_env()
    return get_config._config
