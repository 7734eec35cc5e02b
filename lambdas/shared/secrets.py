"""SSM Parameter Store helpers."""

import os
from functools import lru_cache

import boto3
from aws_lambda_powertools import Logger

logger = Logger(child=True)

# SSM Parameter name for the Anthropic API key
ANTHROPIC_API_KEY_PARAM = "/chronicle/dev/secrets/anthropic_api_key"


@lru_cache(maxsize=4)
def get_anthropic_api_key(param_name: str | None = None) -> str:
    """Retrieve the Anthropic API key from SSM Parameter Store.

    Cached so a warm Lambda only pays for the lookup once.

    Args:
        param_name: Parameter name; falls back to ANTHROPIC_API_KEY_PARAM
            from the environment, then to the default path

    Returns:
        The Anthropic API key string

    Raises:
        ClientError: If SSM parameter not found
    """
    name = param_name or os.environ.get("ANTHROPIC_API_KEY_PARAM", ANTHROPIC_API_KEY_PARAM)

    client = boto3.client("ssm")
    response = client.get_parameter(Name=name, WithDecryption=True)
    logger.info("Retrieved Anthropic API key", extra={"parameter": name})
    return response["Parameter"]["Value"]
