"""FastAPI dependencies for the emotion recognition API.

The pipeline is built once per application by ``build_pipeline`` and kept on
``app.state``; endpoints receive it through ``Depends(get_pipeline)``.

Example:
    >>> from fastapi import Depends
    >>> @app.get("/")
    >>> async def endpoint(pipeline: EmotionPipeline = Depends(get_pipeline)):
    ...     return {"ready": pipeline.is_ready()}
"""

import logging

from fastapi import Request

from faceio import ImageConfig
from model import EmotionPipeline, LoaderConfig, ModelLoader, source_from_uri

from .config import Settings


logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings) -> EmotionPipeline:
    """Construct an inference pipeline from settings.

    Nothing is loaded here; the application lifespan starts the load.

    Args:
        settings: Application settings.

    Returns:
        A new, not yet loaded EmotionPipeline.
    """
    source = source_from_uri(settings.model_source, timeout=settings.fetch_timeout_sec)
    loader = ModelLoader(
        source,
        LoaderConfig(manifest_name=settings.manifest_name, device=settings.device),
    )
    image_config = ImageConfig(max_pixels=settings.max_image_pixels)
    return EmotionPipeline(loader, image_config=image_config)


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


def get_pipeline(request: Request) -> EmotionPipeline:
    """Return the pipeline owned by the application."""
    return request.app.state.pipeline
