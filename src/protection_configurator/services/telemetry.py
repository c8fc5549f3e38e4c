"""
Pick-2 telemetry.

Configuration is injected when the logger is built, so the sampling decision
depends only on that config and the random draw, not on call order.
"""
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..config.settings import TelemetryConfig
from .catalog_store import DocumentStore

logger = logging.getLogger(__name__)

PICK2_EVENTS = 'pick2_events'


def should_sample(config: TelemetryConfig, draw: float) -> bool:
    """Pure sampling decision for a draw in [0, 1)."""
    return config.enabled and config.sample_rate > 0 and draw < config.sample_rate


@dataclass
class Pick2Event:
    count_selected: int
    page: str
    item_id: Optional[str] = None
    preset_label: Optional[str] = None
    ts: Optional[int] = None  # Epoch milliseconds


class TelemetryLogger:
    """Writes sampled pick-2 events to the document store. Never raises."""

    def __init__(
        self,
        config: TelemetryConfig,
        store: Optional[DocumentStore],
        rng: Callable[[], float] = random.random,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.store = store
        self.rng = rng
        self.clock = clock

    async def log_pick2_event(self, event_name: str, event: Pick2Event) -> bool:
        """Record an event. Returns True if it was written."""
        if self.store is None or not should_sample(self.config, self.rng()):
            return False

        payload = {
            'eventName': event_name,
            'itemId': event.item_id,
            'presetLabel': event.preset_label,
            'countSelected': event.count_selected,
            'page': event.page,
            'ts': event.ts if event.ts is not None else int(self.clock() * 1000),
        }
        try:
            await self.store.add_document(PICK2_EVENTS, payload)
        except Exception as e:
            logger.warning(f"Pick2 telemetry write failed: {e!r}")
            return False
        return True

