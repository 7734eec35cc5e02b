"""Campaign Lambda handler: create campaigns and play turns."""

import asyncio
from typing import Any

import anthropic
from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.event_handler import (
    APIGatewayRestResolver,
    CORSConfig,
    Response,
)
from aws_lambda_powertools.event_handler.exceptions import (
    BadRequestError,
    UnauthorizedError,
)
from aws_lambda_powertools.event_handler.exceptions import (
    NotFoundError as APINotFoundError,
)
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from campaign.models import (
    INPUT_PLACEHOLDERS,
    CampaignCreateRequest,
    CampaignSnapshot,
    EventPayload,
    PromptRequest,
    TurnResponse,
)
from campaign.repository import CampaignRepository
from campaign.service import CampaignService, TurnResult, load_conversation
from campaign.state_manager import GameStateManager
from narrator.claude_client import ClaudeClient, NarrationClient
from narrator.combat import CombatResolver
from narrator.mock_client import MockNarrationClient
from narrator.prompts import load_system_prompts
from narrator.service import TurnOrchestrator
from shared.config import get_config
from shared.exceptions import ConfigurationError, GameStateError, NarrationError, NotFoundError
from shared.exceptions import ValidationError as RequestValidationError
from shared.secrets import get_anthropic_api_key
from shared.utils import extract_user_id

logger = Logger()
tracer = Tracer()
metrics = Metrics(namespace="ChronicleRPG")

config = get_config()
cors_config = CORSConfig(
    allow_origin="*",
    allow_headers=["Content-Type", "X-User-ID", "X-User-Id"],
)
app = APIGatewayRestResolver(cors=cors_config)

_service: CampaignService | None = None


def get_service() -> CampaignService:
    """Get or create the campaign service singleton.

    The prompt table is loaded once here and shared read-only by every turn.
    """
    global _service
    if _service is None:
        system_prompts = load_system_prompts(config.system_prompts_path)
        client: NarrationClient
        if config.use_mocks:
            client = MockNarrationClient(system_prompts)
        else:
            client = ClaudeClient(api_key=get_anthropic_api_key(config.anthropic_api_key_param))

        repository = CampaignRepository(config.table_name)
        orchestrator = TurnOrchestrator(
            narration_client=client,
            state_manager=GameStateManager(repository),
            system_prompts=system_prompts,
            stream_chat_completions=config.stream_chat_completions,
            resolver=CombatResolver(
                player_hit_threshold=config.player_hit_threshold,
                opponent_hit_threshold=config.opponent_hit_threshold,
            ),
        )
        _service = CampaignService(repository, orchestrator)
    return _service


def reset_service() -> None:
    """Reset the service instance (for testing)."""
    global _service
    _service = None


def get_user_id() -> str:
    """Extract and validate user ID from request headers."""
    user_id = extract_user_id(app.current_event.headers)
    if not user_id:
        raise UnauthorizedError("User ID required")
    return user_id


def _error_response(status_code: int, message: str) -> Response:
    return Response(
        status_code=status_code,
        content_type="application/json",
        body={"error": message},
    )


def _turn_response(result: TurnResult, status_code: int = 200, placeholder: str | None = None) -> Response:
    body = TurnResponse(
        message=result.message,
        events=[EventPayload.from_event(event) for event in result.events],
        campaign=CampaignSnapshot.from_campaign(result.campaign),
    )
    if placeholder:
        body.input_placeholder = placeholder
    return Response(
        status_code=status_code,
        content_type="application/json",
        body=body.model_dump_json(),
    )


def _record_turn(result: TurnResult) -> None:
    if result.message is None:
        return
    metrics.add_metric(name="TurnsProcessed", unit=MetricUnit.Count, value=1)
    if result.campaign.player.is_dead:
        metrics.add_metric(name="PlayerDeaths", unit=MetricUnit.Count, value=1)


def _narration_failure(e: NarrationError) -> Response:
    if isinstance(e.__cause__, anthropic.RateLimitError):
        logger.warning("Claude API rate limit exceeded")
        return _error_response(429, "Rate limit exceeded. Please try again later.")
    logger.error("Narration failed", extra={"error": e.message, "provider": e.provider})
    return _error_response(503, "Narrator temporarily unavailable")


@app.exception_handler(RequestValidationError)
def handle_validation_error(e: RequestValidationError) -> Response:
    return _error_response(400, e.message)


@app.exception_handler(ConfigurationError)
def handle_configuration_error(e: ConfigurationError) -> Response:
    logger.error("Service misconfigured", extra={"error": e.message, "config_key": e.config_key})
    return _error_response(500, "Service misconfigured")


@app.post("/campaigns")
@tracer.capture_method
def create_campaign() -> Response:
    """Create a campaign and narrate its opening scene.

    Returns:
        201 response with the opening message and campaign snapshot
    """
    user_id = get_user_id()

    try:
        body = app.current_event.json_body or {}
        request = CampaignCreateRequest(**body)
    except ValidationError as e:
        error_msg = e.errors()[0].get("msg", "Invalid request")
        raise BadRequestError(error_msg) from None

    service = get_service()
    campaign = service.create_campaign(user_id, request)

    try:
        result = asyncio.run(service.start_campaign(campaign))
    except NarrationError as e:
        return _narration_failure(e)

    _record_turn(result)
    return _turn_response(result, status_code=201)


@app.get("/campaigns/<campaign_id>")
@tracer.capture_method
def get_campaign(campaign_id: str) -> dict[str, Any]:
    """Get a campaign snapshot.

    Args:
        campaign_id: Campaign UUID from path

    Returns:
        200 response with the campaign snapshot
    """
    user_id = get_user_id()

    try:
        campaign = get_service().get_campaign(user_id, campaign_id)
    except NotFoundError:
        raise APINotFoundError("Campaign not found") from None

    return CampaignSnapshot.from_campaign(campaign).model_dump(mode="json")


@app.post("/campaigns/<campaign_id>/prompts")
@tracer.capture_method
def post_prompt(campaign_id: str) -> Response:
    """Process a player prompt.

    Args:
        campaign_id: Campaign UUID from path

    Returns:
        Response with the narrated reply, turn events and campaign snapshot
    """
    user_id = get_user_id()

    try:
        body = app.current_event.json_body or {}
        request = PromptRequest(**body)
    except ValidationError as e:
        error_msg = e.errors()[0].get("msg", "Invalid request")
        raise BadRequestError(error_msg) from None

    service = get_service()

    try:
        campaign = service.get_campaign(user_id, campaign_id)
        conversation = load_conversation(campaign)
        result = asyncio.run(
            service.submit_prompt(campaign, conversation, request.prompt, request.prompt_type)
        )
    except NotFoundError as e:
        raise APINotFoundError(f"{e.resource_type.title()} not found") from None
    except GameStateError as e:
        raise BadRequestError(str(e)) from None
    except NarrationError as e:
        return _narration_failure(e)

    _record_turn(result)
    return _turn_response(result, placeholder=INPUT_PLACEHOLDERS[request.prompt_type])


@logger.inject_lambda_context
@tracer.capture_lambda_handler
@metrics.log_metrics
def lambda_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Main Lambda entry point."""
    return app.resolve(event, context)
