"""Main entry point for the popcorn social API."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from popcorn_social.api.v1 import api_v1
from popcorn_social.core.settings import settings
from popcorn_social.db.session import create_engine, create_tables
from popcorn_social.services.social_session import SessionRegistry
from popcorn_social.store.base import RelationalStore
from popcorn_social.store.sql_store import SqlStore

logger = logging.getLogger(__name__)

app = FastAPI(
    title="PopcornPal Social API",
    description="Feed aggregation and comment threads for media tracking",
    version=settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)
app.add_middleware(GZipMiddleware)

app.include_router(api_v1, prefix="/api/v1")


async def build_store() -> RelationalStore:
    """Return the hosted backend when configured, otherwise the local SQL store."""
    if settings.supabase_configured:
        from popcorn_social.store.supabase_store import SupabaseStore

        logger.info("Using hosted backend at %s", settings.supabase_url)
        return await SupabaseStore.connect()
    logger.info("Hosted backend not configured; using %s", settings.database_url)
    engine = create_engine()
    await create_tables(engine)
    return SqlStore(engine)


@app.on_event("startup")
async def on_startup() -> None:
    store = await build_store()
    app.state.store = store
    app.state.registry = SessionRegistry(store)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    store = getattr(app.state, "store", None)
    if isinstance(store, SqlStore):
        await store.engine.dispose()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("popcorn_social.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
