"""
Webhook delivery of trend summaries.

Messages are posted as {"content": "..."} which chat webhooks (Discord,
Mattermost, generic relays) accept as a plain text message.
"""

import logging
from typing import Iterable

import httpx

from src.core.errors import NotificationError
from src.core.models import TrendSummary
from src.observability.logger import get_logger


def format_trend_line(summary: TrendSummary) -> str:
    """Render one summary as a single line of text."""
    label = f"{summary.location} / {summary.pcr_pathogen_target}"
    notification = summary.as_notification()

    if notification is None:
        return f"{label}: no data"

    _, _, latest_value, latest_date, difference, previous_date = notification
    line = f"{label}: {latest_value:,.0f} on {latest_date.isoformat()}"
    if difference is None:
        return f"{line} (no prior data)"
    return f"{line} ({difference:+,.0f} since {previous_date.isoformat()})"


def format_trend_message(summaries: Iterable[TrendSummary]) -> str:
    """
    Render summaries as a notification body.

    Args:
        summaries: Trend summaries, one per watched pair

    Returns:
        Header line followed by one line per summary
    """
    lines = ["Wastewater update (gene copies/person/day)"]
    lines.extend(format_trend_line(summary) for summary in summaries)
    return "\n".join(lines)


class WebhookNotifier:
    """
    Posts trend summaries to a webhook URL.
    """

    def __init__(
        self,
        url: str,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize notifier.

        Args:
            url: Webhook endpoint
            client: Optional preconfigured httpx client
            timeout: Request timeout in seconds
            logger: Logger instance
        """
        self.url = url
        self.logger = logger or get_logger(__name__)
        if client is None:
            self._client = httpx.Client(timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    def send(self, summaries: list[TrendSummary]) -> None:
        """
        Deliver one message covering all summaries.

        Args:
            summaries: Trend summaries to report

        Raises:
            NotificationError: If the webhook cannot be reached or rejects the post
        """
        if not summaries:
            self.logger.info("No trend summaries to send")
            return

        payload = {"content": format_trend_message(summaries)}
        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook delivery failed: {e}") from e

        self.logger.info("Sent trend notification", extra={"summaries": len(summaries)})

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
