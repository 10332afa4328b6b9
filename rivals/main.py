from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rivals.api import health_router, inventory_router, orders_router
from rivals.config import settings
from rivals.db.database import init_db


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("rivals"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(inventory_router)
app.include_router(orders_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
