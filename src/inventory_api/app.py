import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from common.config.env import get_env_int, get_env_str
from dal.database import Database
from inventory_api import facility, water_system
from inventory_api.dependencies import get_database
from inventory_api.errors import ResourceNotFoundError, not_found_handler
from inventory_api.settings import InventorySettings

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Liveness plus the datasource currently serving queries."""

    status: str = "ok"
    datasource: str = Field(description="demo, postgresql, mssql or oracle")


def configure_logging() -> None:
    level = (get_env_str("LOG_LEVEL", "INFO") or "INFO").upper()
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def create_app(
    database: Optional[Database] = None, settings: Optional[InventorySettings] = None
) -> FastAPI:
    """Build the inventory API.

    Args:
        database: Pre-built database; when omitted one is created from the
            environment at startup.
        settings: SDWIS/STATE naming; defaults to ``InventorySettings.from_env()``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the backend connection without blocking startup; close it on shutdown."""
        if database is None:
            load_dotenv()
            configure_logging()
        db = database or Database.from_env()
        app.state.database = db
        app.state.settings = settings or InventorySettings.from_env()
        db.start()
        logger.info("SDWIS Translation API starting [%s mode]", db.mode.value)
        yield
        await db.close()

    app = FastAPI(
        title="SDWIS Translation API",
        version="0.1.0",
        description="DW-SFTIES compatible read-only API backed by SDWIS/STATE data",
        lifespan=lifespan,
    )
    app.add_exception_handler(ResourceNotFoundError, not_found_handler)

    # "facility" must not be captured as a {water_system_id}.
    app.include_router(facility.router)
    app.include_router(water_system.router)

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    @app.get("/health", response_model=HealthResponse)
    async def health(db: Database = Depends(get_database)) -> HealthResponse:
        return HealthResponse(datasource=db.mode.value)

    return app


def main() -> None:
    """Console entry point: serve the API with uvicorn on ``PORT`` (default 3000)."""
    import uvicorn

    load_dotenv()
    port = get_env_int("PORT", 3000)
    uvicorn.run(create_app(), host=get_env_str("HOST", "0.0.0.0"), port=port)


if __name__ == "__main__":
    main()
