"""Inference pipeline: image -> input tensor -> forward pass -> prediction.

The pipeline is constructed explicitly around a ModelLoader and handed to
whatever consumes it (the API keeps one on ``app.state``). It never starts a
load on its own; callers await ``wait_for_ready()`` before detecting.

Example:
    >>> pipeline = EmotionPipeline(ModelLoader("models/emotion"))
    >>> await pipeline.wait_for_ready()
    >>> result = await pipeline.detect_emotion(RawImage.from_array(frame))
    >>> result.emotion, result.confidence
    ('happy', 0.91)
"""

import asyncio
import logging
import math
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import torch

from faceio import INPUT_SIZE, ImageConfig, InputTensor, RawImage, decode_data_url, decode_image, preprocess_image

from .errors import InferenceError, NotReadyError
from .labels import LabelManifest
from .loader import ModelLoader
from .tensors import score_vector, to_model_layout
from .types import ModelHandle, PipelineState, PredictionResult


logger = logging.getLogger(__name__)


def postprocess(
    scores: Sequence[float],
    labels: Sequence[str],
    model_name: str = "",
) -> PredictionResult:
    """Map a score vector to a prediction.

    The highest score wins; on an exact tie the lowest index wins. Scores are
    reported as given: if they do not sum to 1 they are not re-normalized.

    Args:
        scores: One score per label, in manifest order.
        labels: Label manifest order.
        model_name: Name recorded on the result.

    Returns:
        PredictionResult with the winning label and every label's score.

    Raises:
        InferenceError: With code LABEL_MISMATCH if lengths differ or are zero.

    Examples:
        >>> postprocess([0.5, 0.5, 0.0], ["angry", "happy", "sad"]).emotion
        'angry'
    """
    if not labels or len(scores) != len(labels):
        raise InferenceError(
            message=f"Got {len(scores)} scores for {len(labels)} labels",
            code="LABEL_MISMATCH",
            details={"num_scores": len(scores), "num_labels": len(labels)},
        )

    values = [float(score) for score in scores]

    best = 0
    for index, value in enumerate(values):
        if value > values[best]:
            best = index

    return PredictionResult(
        emotion=labels[best],
        confidence=values[best],
        probabilities=dict(zip(labels, values)),
        model_name=model_name,
    )


class EmotionPipeline:
    """Preprocess, infer and postprocess one still image at a time.

    Attributes:
        loader: Owner of the model and label manifest.
        image_config: Decoding and preprocessing configuration.
            Its target_size must be 48; other sizes raise ValueError.
    """

    def __init__(
        self,
        loader: ModelLoader,
        image_config: ImageConfig | None = None,
    ) -> None:
        image_config = image_config or ImageConfig()
        if image_config.target_size != INPUT_SIZE:
            # The loader validates the model against a fixed 48x48 input
            raise ValueError(
                f"EmotionPipeline requires target_size={INPUT_SIZE}, got {image_config.target_size}"
            )
        self.loader = loader
        self.image_config = image_config
        self._lock = asyncio.Lock()
        self._inferring = False

    @property
    def state(self) -> PipelineState:
        if self._inferring:
            return PipelineState.INFERRING
        return self.loader.state

    def is_ready(self) -> bool:
        return self.loader.is_ready()

    async def wait_for_ready(self) -> None:
        """Await the loader. Raises LoadError if loading fails."""
        await self.loader.wait_for_ready()

    def preprocess(self, image: RawImage | np.ndarray) -> InputTensor:
        """Turn a raw image into a [1, 48, 48, 1] input tensor."""
        return preprocess_image(image, target_size=INPUT_SIZE)

    async def infer(self, tensor: InputTensor) -> list[float]:
        """Run exactly one forward pass and return one score per label.

        Raises:
            NotReadyError: If the loader has not finished loading.
            InferenceError: If the forward pass raises or its output is malformed.
        """
        scores, _ = await self._infer(tensor)
        return scores

    async def detect_emotion(self, image: RawImage | np.ndarray) -> PredictionResult:
        """Predict the emotion shown in a single image.

        The input tensor is released whether or not inference succeeds.

        Raises:
            PreprocessError: If the image is empty or malformed.
            NotReadyError: If the loader has not finished loading.
            InferenceError: If the forward pass fails.
        """
        with self.preprocess(image) as tensor:
            scores, manifest = await self._infer(tensor)

        result = postprocess(scores, manifest.labels, model_name=manifest.name)
        logger.debug(
            "Prediction: emotion=%s confidence=%.4f",
            result.emotion,
            result.confidence,
        )
        return result

    async def detect_emotion_bytes(
        self,
        path_or_bytes: Union[str, Path, bytes],
    ) -> PredictionResult:
        """Decode an image (bytes, path or data URL) and predict its emotion.

        Raises:
            ImageDecodeError: If the image cannot be decoded.
            PreprocessError, NotReadyError, InferenceError: As detect_emotion.
        """
        image = await asyncio.to_thread(decode_image, path_or_bytes, self.image_config)
        return await self.detect_emotion(image)

    async def detect_emotion_data_url(self, data_url: str) -> PredictionResult:
        """Predict the emotion in a webcam snapshot ``data:image/...;base64,`` URL.

        Only data URLs are accepted; a plain string is never read as a path.

        Raises:
            ImageDecodeError: With code INVALID_DATA_URL if ``data_url`` is not
                a base64 image data URL, or as decode_data_url otherwise.
            PreprocessError, NotReadyError, InferenceError: As detect_emotion.
        """
        image = await asyncio.to_thread(decode_data_url, data_url, self.image_config)
        return await self.detect_emotion(image)

    async def _infer(self, tensor: InputTensor) -> tuple[list[float], LabelManifest]:
        handle = self.loader.handle
        manifest = self.loader.manifest

        async with self._lock:
            self._inferring = True
            try:
                scores = await asyncio.to_thread(_forward, handle, manifest, tensor.data)
            finally:
                self._inferring = False

        return scores, manifest


def _forward(handle: ModelHandle, manifest: LabelManifest, data: torch.Tensor) -> list[float]:
    """Run one forward pass and copy the scores out of the output tensor."""
    module = handle.module
    if module is None:
        raise NotReadyError(
            message="Model was disposed before inference ran",
            code="MODEL_NOT_READY",
            details={"model_name": handle.name},
        )

    try:
        with torch.inference_mode():
            output = module(to_model_layout(data.to(handle.device), manifest.input_layout))
    except Exception as e:
        raise InferenceError(
            message=f"Forward pass failed: {e}",
            code="INFERENCE_FAILED",
            details={"input_shape": list(data.shape), "error": str(e)},
        ) from e

    vector = score_vector(output)
    try:
        if vector is None or vector.shape[0] != len(manifest):
            shape = list(output.shape) if isinstance(output, torch.Tensor) else type(output).__name__
            raise InferenceError(
                message=f"Expected {len(manifest)} scores from the model",
                code="MALFORMED_OUTPUT",
                details={"output_shape": shape, "num_labels": len(manifest)},
            )
        scores = [float(value) for value in vector.detach().cpu().tolist()]
    finally:
        del output, vector

    non_finite = sum(1 for score in scores if not math.isfinite(score))
    if non_finite:
        raise InferenceError(
            message="Model output contains non-finite scores",
            code="MALFORMED_OUTPUT",
            details={"non_finite_count": non_finite, "num_labels": len(scores)},
        )

    return scores
