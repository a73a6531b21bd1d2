"""
Default integration event sink: structured log lines.
"""
from __future__ import annotations

from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingEventPublisher:
    async def publish(self, event_type: str, content: str) -> None:
        logger.info("integration_event_published", event_type=event_type, content=content)
