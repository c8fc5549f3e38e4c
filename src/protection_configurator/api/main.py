import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from protection_configurator import __version__
from protection_configurator.api.catalog_api import router as catalog_router
from protection_configurator.api.state import AppState, close_state, get_state

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Protection Configurator API")
    yield
    close_state()
    logger.info("Protection Configurator API stopped")


app = FastAPI(
    title="Protection Configurator API",
    description="Backend API for the vehicle protection package configurator",
    version=__version__,
    lifespan=lifespan
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include catalog API
app.include_router(catalog_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Protection Configurator API Active"}


@app.get("/system/status")
async def get_status(state: AppState = Depends(get_state)):
    snapshot = state.snapshot
    return {
        "store_configured": state.store is not None,
        "catalog_loaded": snapshot is not None,
        "catalog_source": snapshot.source if snapshot else None,
        "telemetry_enabled": state.settings.telemetry.enabled,
    }
