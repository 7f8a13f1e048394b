"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from xcstrings_translator import __version__
from xcstrings_translator.config import settings
from xcstrings_translator.core.cache import create_cache
from xcstrings_translator.api.v1.routes import cache, translation

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: load the translation cache and drop expired entries
    translation_cache = create_cache(settings)
    translation_cache.load()
    app.state.cache = translation_cache
    logger.info(
        "Translation cache ready: %d entries (persist=%s)",
        len(translation_cache),
        settings.cache_persist,
    )

    yield

    # Shutdown: flush pending cache writes
    translation_cache.close()


app = FastAPI(
    title=settings.app_name,
    description="XCStrings translation service with LLM support",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(translation.router, prefix="/api/v1", tags=["translation"])
app.include_router(cache.router, prefix="/api/v1", tags=["cache"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "XCStrings Translator API", "version": __version__}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
