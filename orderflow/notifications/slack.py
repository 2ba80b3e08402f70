import logging

import httpx

from orderflow.config import get_config

logger = logging.getLogger(__name__)


async def send_slack_notification(message: str, blocks: list[dict] | None = None) -> bool:
    """Post an ops message to the configured Slack webhook.

    Args:
        message: The fallback text message.
        blocks: Optional list of Slack Block Kit blocks for rich formatting.

    Returns:
        bool: True if Slack accepted the message, False otherwise.
    """
    config = get_config()

    if not config.notifications.enabled:
        logger.debug("slack_notifications_disabled_by_config")
        return False

    if not config.notifications.slack_webhook_url:
        logger.debug("slack_webhook_url_missing: no webhook configured")
        return False

    payload = {"text": message}
    if blocks:
        payload["blocks"] = blocks

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(config.notifications.slack_webhook_url, json=payload)
    except httpx.HTTPError as e:
        logger.error("slack_notification_error: %s", str(e))
        return False

    if response.status_code != 200:
        logger.error(
            "slack_notification_failed: status=%s response=%s",
            response.status_code,
            response.text,
        )
        return False

    logger.info("slack_notification_sent")
    return True
