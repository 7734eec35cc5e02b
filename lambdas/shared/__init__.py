"""Shared utilities for Chronicle RPG Lambda functions."""

from .config import Config, get_config
from .exceptions import (
    ChronicleError,
    ConfigurationError,
    GameStateError,
    NarrationError,
    NotFoundError,
    ValidationError,
)
from .models import (
    Campaign,
    CampaignStatus,
    Character,
    CharacterType,
    Environment,
    Message,
    MessageRole,
)

__all__ = [
    # Config
    "Config",
    "get_config",
    # Exceptions
    "ChronicleError",
    "ConfigurationError",
    "GameStateError",
    "NarrationError",
    "NotFoundError",
    "ValidationError",
    # Models
    "Campaign",
    "CampaignStatus",
    "Character",
    "CharacterType",
    "Environment",
    "Message",
    "MessageRole",
]
