"""
Career Match Engine API - Main Application Entry Point

This module initializes the FastAPI application with:
- CORS middleware for frontend communication
- API router registration
- Match cache shutdown

Architecture:
    FastAPI App
    ├── Lifespan Management (shutdown closes Redis)
    ├── CORS Middleware (origins from settings)
    └── API Router
        ├── /matching - Scoring, recommendations and skill gaps
        └── /studios - Studio indexing and fuzzy search
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import api_router
from app.config import get_settings
from app.services.cache import get_cache


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Nothing is loaded at startup: the studio index is populated through
    POST /studios/index and Redis connects lazily on first use.
    """
    yield
    cache = await get_cache()
    await cache.close()


app = FastAPI(
    title="Career Match Engine API",
    description="Job matching, skill gap analysis and studio search",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    cache = await get_cache()
    return {
        "status": "healthy",
        "cache": "connected" if await cache.health_check() else "unavailable",
    }
