"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.emojigrid_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="EmojiGrid",
        description="GeoJSON to emoji grid — color-keyed rasterization and per-cell majority vote",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Import all stage modules to trigger registration
    _register_transforms()

    from app.api.router import api_router

    app.include_router(api_router)

    return app


def _register_transforms() -> None:
    """Import all stage modules so @transform decorators fire."""
    from app.engine.registry import load_transforms

    registry = load_transforms()
    logging.getLogger(__name__).debug("%d grid stages registered", registry.count)


app = create_app()
