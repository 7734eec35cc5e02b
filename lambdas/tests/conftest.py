"""Shared fixtures for Chronicle RPG Lambda tests."""

import os
import random

import boto3
import pytest
from moto import mock_aws

os.environ.setdefault("TABLE_NAME", "chronicle-test")
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("USE_MOCKS", "true")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "ChronicleRPG")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "chronicle-test")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from narrator.combat import CombatResolver  # noqa: E402
from narrator.prompts import build_system_prompts  # noqa: E402
from shared.models import Campaign, Character, CharacterType, Environment  # noqa: E402


@pytest.fixture(autouse=True)
def reset_config():
    """Drop any cached Config between tests."""
    from shared.config import get_config

    if hasattr(get_config, "_config"):
        del get_config._config
    yield
    if hasattr(get_config, "_config"):
        del get_config._config


@pytest.fixture
def env_setup(monkeypatch):
    """Known configuration environment for config tests."""
    monkeypatch.setenv("TABLE_NAME", "test-table")
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("POWERTOOLS_LOG_LEVEL", "DEBUG")
    for key in (
        "USE_MOCKS",
        "STREAM_CHAT_COMPLETIONS",
        "SYSTEM_PROMPTS_PATH",
        "PLAYER_HIT_THRESHOLD",
        "OPPONENT_HIT_THRESHOLD",
        "ANTHROPIC_API_KEY_PARAM",
    ):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def dynamodb_table():
    """Campaign table with moto active for the whole test."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        table = dynamodb.create_table(
            TableName=os.environ["TABLE_NAME"],
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        yield table


@pytest.fixture
def system_prompts():
    """The built-in prompt table."""
    return build_system_prompts()


@pytest.fixture
def seeded_resolver():
    return CombatResolver(rng=random.Random(1234))


@pytest.fixture
def campaign():
    """An active campaign with the player in a tavern."""
    tavern = Environment(name="The Rusty Flagon", description="A smoky tavern")
    return Campaign(
        user_id="user-123",
        title="Test Campaign",
        player=Character(
            name="Aria",
            description="A wandering sellsword",
            is_player=True,
            current_health=100,
            max_health=100,
            environment_id=tavern.environment_id,
        ),
        environments=[tavern],
        start_scenario="You wake in a tavern with no memory of the night before.",
    )


@pytest.fixture
def goblin(campaign):
    """A small goblin added to the campaign's current location."""
    character = Character(
        name="Goblin",
        description="A snarling goblin",
        type=CharacterType.SMALL_CREATURE,
        environment_id=campaign.current_environment.environment_id,
        current_health=20,
        max_health=20,
    )
    campaign.characters.append(character)
    return character
