"""Model module for facial emotion recognition inference.

This module provides:
- Label manifest parsing
- A model loader with single-flight loading and shape validation
- The inference pipeline (preprocess -> infer -> postprocess)

Example:
    >>> from model import EmotionPipeline, ModelLoader
    >>> pipeline = EmotionPipeline(ModelLoader("models/emotion"))
    >>> await pipeline.wait_for_ready()
    >>> result = await pipeline.detect_emotion_bytes(open("face.jpg", "rb").read())
    >>> print(result.emotion, result.confidence)
    happy 0.92
"""

from .errors import InferenceError, LoadError, ModelError, NotReadyError
from .labels import LabelManifest, parse_manifest
from .loader import LoaderConfig, ModelLoader
from .pipeline import EmotionPipeline, postprocess
from .sources import (
    ArtifactFetchError,
    ArtifactSource,
    HttpArtifactSource,
    LocalArtifactSource,
    source_from_uri,
)
from .types import ModelHandle, PipelineState, PredictionResult

__all__ = [
    # Pipeline
    "EmotionPipeline",
    "postprocess",
    # Loader
    "ModelLoader",
    "LoaderConfig",
    "ModelHandle",
    # Sources
    "ArtifactSource",
    "ArtifactFetchError",
    "LocalArtifactSource",
    "HttpArtifactSource",
    "source_from_uri",
    # Labels
    "LabelManifest",
    "parse_manifest",
    # Types
    "PipelineState",
    "PredictionResult",
    # Errors
    "ModelError",
    "LoadError",
    "NotReadyError",
    "InferenceError",
]
