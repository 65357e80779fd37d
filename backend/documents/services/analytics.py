"""
Product analytics sink.

Events are written to the ``documents.analytics`` logger, where a log
shipper can pick them up. Capturing never raises.
"""

import json
import logging

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Fire-and-forget event capture."""

    def capture(self, event: str, properties: dict = None) -> None:
        try:
            logger.info("analytics event=%s properties=%s", event, json.dumps(properties or {}, default=str))
        except Exception:
            logger.exception("Failed to capture analytics event %s", event)


_analytics_service = None


def get_analytics_service() -> AnalyticsService:
    """Get singleton instance of the analytics service."""
    global _analytics_service
    if _analytics_service is None:
        _analytics_service = AnalyticsService()
    return _analytics_service
