"""FastAPI application exposing a geo table."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

# Load .env file from project root (must be before other imports)
load_dotenv()

from geoscan.api.routes import points, queries  # noqa: E402
from geoscan.config import GeoTableConfig  # noqa: E402
from geoscan.persistence.memory_store import InMemoryPointStore  # noqa: E402
from geoscan.services.geo_data_manager import GeoDataManager  # noqa: E402

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "geo-points"


def build_manager() -> GeoDataManager:
    """Wire config and store from ``GEOSCAN_*`` environment variables.

    ``GEOSCAN_STORE=firestore`` selects the Firestore adapter; anything
    else keeps points in memory.
    """
    config = GeoTableConfig.from_env(
        table_name=os.environ.get("GEOSCAN_TABLE_NAME", DEFAULT_TABLE_NAME)
    )
    if os.environ.get("GEOSCAN_STORE", "memory") == "firestore":
        from geoscan.persistence.firestore_store import FirestorePointStore

        store = FirestorePointStore(config)
        logger.info("Serving table %s from Firestore", config.table_name)
    else:
        store = InMemoryPointStore(page_size=config.scan_page_size)
        logger.warning("Serving table %s from an in-memory store", config.table_name)
    return GeoDataManager(config, store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.geo_manager = build_manager()
    yield


app = FastAPI(
    title="geoscan API",
    description="Radius and rectangle queries over a key-value geo index",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(points.router, prefix="/api")
app.include_router(queries.router, prefix="/api")


@app.get("/api/health")
async def health():
    manager = getattr(app.state, "geo_manager", None)
    result = {"status": "ok", "ready": manager is not None}
    if manager is not None:
        result["table"] = manager.config.table_name
        result["hash_key_length"] = manager.config.hash_key_length
    return result
