"""EmojiGrid sampling/classification engine."""

from app.engine.registry import transform, Layer, get_registry, load_transforms
from app.engine.context import GridContext, FeatureData
from app.engine.pipeline import Pipeline, create_pipeline

__all__ = [
    "transform",
    "Layer",
    "get_registry",
    "load_transforms",
    "GridContext",
    "FeatureData",
    "Pipeline",
    "create_pipeline",
]
