"""DynamoDB persistence for campaign aggregates (single-table design)."""

from datetime import UTC, datetime
from typing import Any

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from shared.exceptions import NotFoundError
from shared.models import Campaign

logger = Logger(child=True)

CAMPAIGN_SK_PREFIX = "CAMP#"


class CampaignRepository:
    """Load and store campaigns, one item per campaign under its owner.

    Items are keyed ``USER#{user_id}`` / ``CAMP#{campaign_id}`` so a user's
    campaigns can be listed with a single query.
    """

    def __init__(self, table_name: str, table: Any | None = None) -> None:
        """Initialize with table name.

        Args:
            table_name: Name of the DynamoDB table
            table: Optional pre-built boto3 Table resource (for testing)
        """
        self.table_name = table_name
        self.table = table if table is not None else boto3.resource("dynamodb").Table(table_name)

    def save(self, campaign: Campaign) -> dict[str, Any]:
        """Write the full campaign item.

        Args:
            campaign: Campaign to persist

        Returns:
            The stored item
        """
        campaign.updated_at = datetime.now(UTC).isoformat()
        pk, sk, data = campaign.to_db_item()
        item = {"PK": pk, "SK": sk, **data}

        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(
                "Failed to save campaign",
                extra={"error": str(e), "campaign_id": campaign.campaign_id},
            )
            raise

        logger.info(
            "Campaign saved",
            extra={
                "campaign_id": campaign.campaign_id,
                "messages": len(data["messages"]),
                "combat_mode": campaign.combat_mode,
            },
        )
        return item

    def get(self, user_id: str, campaign_id: str) -> Campaign | None:
        """Load a campaign.

        Args:
            user_id: Owner of the campaign
            campaign_id: Campaign UUID

        Returns:
            Campaign or None if not found
        """
        key = {"PK": f"USER#{user_id}", "SK": f"{CAMPAIGN_SK_PREFIX}{campaign_id}"}
        try:
            response = self.table.get_item(Key=key)
        except ClientError as e:
            logger.error(
                "Failed to load campaign",
                extra={"error": str(e), "campaign_id": campaign_id},
            )
            raise

        item = response.get("Item")
        if item is None:
            return None
        return Campaign.from_db_item(item)

    def get_or_raise(self, user_id: str, campaign_id: str) -> Campaign:
        """Load a campaign or raise NotFoundError.

        Raises:
            NotFoundError: If the campaign doesn't exist
        """
        campaign = self.get(user_id, campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    def list_for_user(self, user_id: str, limit: int = 50) -> list[Campaign]:
        """List a user's campaigns.

        Args:
            user_id: Owner of the campaigns
            limit: Maximum campaigns to return

        Returns:
            List of campaigns
        """
        try:
            response = self.table.query(
                KeyConditionExpression="PK = :pk AND begins_with(SK, :sk)",
                ExpressionAttributeValues={
                    ":pk": f"USER#{user_id}",
                    ":sk": CAMPAIGN_SK_PREFIX,
                },
                Limit=limit,
            )
        except ClientError as e:
            logger.error("Failed to list campaigns", extra={"error": str(e), "user_id": user_id})
            raise

        items = response.get("Items", [])
        logger.debug("Campaign query complete", extra={"user_id": user_id, "count": len(items)})
        return [Campaign.from_db_item(item) for item in items]
