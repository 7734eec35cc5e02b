"""Parser for extracting structured data from narrator responses."""

import json
import re
from typing import Any

from aws_lambda_powertools import Logger
from pydantic import ValidationError

from .models import LlmResponse, LlmResponseCharacter, LlmResponseEnvironment

logger = Logger(child=True)

# Pattern to find JSON code blocks in the response
JSON_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*\n(.*?)\n?```", re.DOTALL)

# Outermost raw JSON object (models do not always fence their output)
RAW_JSON_PATTERN = re.compile(r"\{[\s\S]*\}")


def parse_llm_response(response_text: str) -> LlmResponse:
    """Parse narrator output into a structured payload.

    Handles fenced ```json blocks and bare JSON objects. Parsing is
    best-effort: a field that is missing or malformed is left empty, and
    text without any JSON becomes the narrative.

    Args:
        response_text: Raw response text from the model

    Returns:
        Parsed LlmResponse
    """
    if not response_text or not response_text.strip():
        return LlmResponse()

    for pattern in (JSON_BLOCK_PATTERN, RAW_JSON_PATTERN):
        match = pattern.search(response_text)
        if not match:
            continue
        json_str = match.group(1) if match.groups() else match.group()
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from narrator response: {e}")
            continue
        if not isinstance(data, dict):
            logger.warning("Narrator JSON is not an object", extra={"type": type(data).__name__})
            continue

        response = _build_response(data)
        if response.narrative is None:
            # Prose around the JSON is the narrative
            prose = (response_text[: match.start()] + response_text[match.end():]).strip()
            response.narrative = prose or None
        return response

    logger.debug("No JSON found in narrator response, using narrative only")
    return LlmResponse(narrative=response_text.strip())


def _build_response(data: dict[str, Any]) -> LlmResponse:
    """Build an LlmResponse field by field from parsed JSON.

    Args:
        data: Parsed JSON object

    Returns:
        LlmResponse with every field that validated
    """
    narrative = data.get("narrative")
    if not isinstance(narrative, str):
        narrative = None

    characters: list[LlmResponseCharacter] = []
    raw_characters = data.get("characters")
    if isinstance(raw_characters, list):
        for entry in raw_characters:
            if not isinstance(entry, dict):
                continue
            try:
                characters.append(LlmResponseCharacter(**entry))
            except ValidationError as e:
                logger.warning(f"Skipping malformed character entry: {e}")

    environment = None
    raw_environment = data.get("environment")
    if isinstance(raw_environment, dict):
        try:
            environment = LlmResponseEnvironment(**raw_environment)
        except ValidationError as e:
            logger.warning(f"Skipping malformed environment entry: {e}")

    is_in_combat = data.get("isInCombat")
    if not isinstance(is_in_combat, bool):
        is_in_combat = None

    opponent = data.get("opponent")
    if not isinstance(opponent, str) or not opponent.strip():
        opponent = None

    logger.debug(
        "Parsed narrator JSON",
        extra={
            "characters_count": len(characters),
            "has_environment": environment is not None,
            "is_in_combat": is_in_combat,
            "opponent": opponent,
        },
    )

    return LlmResponse(
        narrative=narrative,
        characters=characters,
        environment=environment,
        is_in_combat=is_in_combat,
        opponent=opponent.strip() if opponent else None,
    )
