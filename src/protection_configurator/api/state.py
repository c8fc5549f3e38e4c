"""
Shared API state: settings, store connection, services and the cached catalog.
"""
import logging
from typing import Optional

from ..config.settings import Settings, get_settings
from ..engine.models import CatalogSnapshot
from ..services.catalog_service import CatalogService
from ..services.catalog_store import DocumentStore, create_store
from ..services.telemetry import TelemetryLogger

logger = logging.getLogger(__name__)


class AppState:
    """Everything a request handler needs, built once per process."""

    def __init__(self, settings: Settings, store: Optional[DocumentStore]):
        self.settings = settings
        self.store = store
        self.catalog_service = CatalogService(store, settings)
        self.telemetry = TelemetryLogger(settings.telemetry, store)
        self.snapshot: Optional[CatalogSnapshot] = None

    async def get_catalog(self) -> CatalogSnapshot:
        if self.snapshot is None:
            await self.reload()
        return self.snapshot

    async def reload(self) -> CatalogSnapshot:
        self.snapshot = await self.catalog_service.get_catalog()
        logger.info(
            f"Catalog loaded from {self.snapshot.source}: "
            f"{len(self.snapshot.packages)} packages, {len(self.snapshot.features)} features, "
            f"{len(self.snapshot.ala_carte_options)} a la carte options"
        )
        return self.snapshot

    def close(self):
        close = getattr(self.store, 'close', None)
        if close:
            close()


_state: Optional[AppState] = None


def get_state() -> AppState:
    """FastAPI dependency returning the process-wide state."""
    global _state
    if _state is None:
        settings = get_settings()
        _state = AppState(settings, create_store(settings))
    return _state


def close_state():
    """Release the store connection, if a state was ever created."""
    global _state
    if _state is not None:
        _state.close()
        _state = None
