"""Process-wide system prompt table.

Built once at startup and handed to the turn orchestrator; the returned
mapping is read-only.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from aws_lambda_powertools import Logger

from narrator.models import SystemPromptType
from shared.exceptions import ConfigurationError

from .templates import DEFAULT_SYSTEM_PROMPTS

logger = Logger(child=True)

SystemPrompts = Mapping[SystemPromptType, str]


def build_system_prompts(overrides: Mapping[str, str] | None = None) -> SystemPrompts:
    """Merge template overrides onto the built-in templates.

    Args:
        overrides: Template text keyed by SystemPromptType value
            (e.g. "CombatHitHit")

    Returns:
        Read-only mapping covering every SystemPromptType

    Raises:
        ConfigurationError: On an unknown template name or non-string text
    """
    prompts = dict(DEFAULT_SYSTEM_PROMPTS)
    for name, text in (overrides or {}).items():
        try:
            prompt_type = SystemPromptType(name)
        except ValueError:
            raise ConfigurationError(
                f"Unknown system prompt '{name}'", config_key="SYSTEM_PROMPTS_PATH"
            ) from None
        if not isinstance(text, str):
            raise ConfigurationError(
                f"System prompt '{name}' must be a string", config_key="SYSTEM_PROMPTS_PATH"
            )
        prompts[prompt_type] = text
    return MappingProxyType(prompts)


def load_system_prompts(path: str | None = None) -> SystemPrompts:
    """Load the prompt table, optionally overridden from a JSON file.

    Args:
        path: JSON file mapping template names to text

    Returns:
        Read-only mapping covering every SystemPromptType

    Raises:
        ConfigurationError: If the file is missing or not a JSON object
    """
    if not path:
        return build_system_prompts()

    try:
        overrides = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(
            f"System prompts file not found: {path}", config_key="SYSTEM_PROMPTS_PATH"
        ) from None
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"System prompts file is not valid JSON: {e}", config_key="SYSTEM_PROMPTS_PATH"
        ) from None

    if not isinstance(overrides, dict):
        raise ConfigurationError(
            "System prompts file must contain a JSON object", config_key="SYSTEM_PROMPTS_PATH"
        )

    logger.info("Loaded system prompt overrides", extra={"path": path, "overrides": sorted(overrides)})
    return build_system_prompts(overrides)
