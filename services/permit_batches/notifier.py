"""Fire-and-forget run summary notifications."""
import logging
from typing import Optional

import requests

from .models import RunSummary

logger = logging.getLogger(__name__)


def send_summary(url: Optional[str], summary: RunSummary, timeout: float = 10.0) -> bool:
    """
    POST the run summary as JSON to a webhook.

    Delivery problems are logged and swallowed; they never fail a run.

    Returns:
        True if the webhook accepted the payload
    """
    if not url:
        logger.debug("No notification webhook configured")
        return False

    try:
        response = requests.post(url, json=summary.to_notification(), timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"Failed to send run summary to webhook: {e}")
        return False

    logger.info("Run summary sent")
    return True
