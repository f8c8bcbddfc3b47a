"""Pydantic schemas for API request/response models.

This module defines all the request and response schemas used by the
API endpoints, ensuring consistent serialization and validation.

Example:
    >>> from src.api.schemas import PredictResponse
    >>> response = PredictResponse(
    ...     emotion="happy",
    ...     confidence=0.85,
    ...     model_name="fer2013-cnn",
    ... )
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Health Endpoint
# =============================================================================


class HealthResponse(BaseModel):
    """Response schema for /health endpoint."""

    model_config = ConfigDict(protected_namespaces=())

    status: Literal["ok", "loading", "unavailable"] = Field(
        description="Service status: ok once the model is ready",
        examples=["ok"],
    )
    state: str = Field(
        description="Pipeline state",
        examples=["ready", "loading", "failed"],
    )
    model_name: str | None = Field(
        default=None,
        description="Loaded model name (null until ready)",
        examples=["fer2013-cnn"],
    )
    device: str = Field(
        description="Device used for inference",
        examples=["cpu", "cuda"],
    )
    labels: list[str] | None = Field(
        default=None,
        description="Emotion labels in model output order (null until ready)",
    )
    error: str | None = Field(
        default=None,
        description="Code of the last load failure, if any",
        examples=["MANIFEST_FETCH_FAILED"],
    )


class LabelsResponse(BaseModel):
    """Response schema for /labels endpoint."""

    labels: list[str] = Field(
        description="Emotion labels in model output order",
        examples=[["angry", "disgust", "fear", "happy", "neutral", "sad", "surprise"]],
    )


# =============================================================================
# Predict Endpoints
# =============================================================================


class PredictResponse(BaseModel):
    """Response schema for /predict and /capture (single-image emotion)."""

    model_config = ConfigDict(protected_namespaces=())

    emotion: str = Field(
        description="Predicted emotion label",
        examples=["happy", "sad", "angry", "neutral"],
    )
    confidence: float = Field(
        description="Model score for the predicted emotion, as produced by the model",
        examples=[0.85],
    )
    probabilities: dict[str, float] | None = Field(
        default=None,
        description="Per-label scores in manifest order (if include_probabilities=true)",
        examples=[{"angry": 0.05, "happy": 0.85, "sad": 0.1}],
    )
    model_name: str = Field(
        description="Name of the model used for prediction",
        examples=["fer2013-cnn"],
    )


# =============================================================================
# Error Response
# =============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(
        description="Error code for programmatic handling",
        examples=["INVALID_IMAGE", "MODEL_UNAVAILABLE"],
    )
    message: str = Field(
        description="Human-readable error message",
        examples=["Failed to decode image"],
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error context",
    )


class ApiErrorResponse(BaseModel):
    """Standard error response wrapper."""

    error: ErrorDetail = Field(
        description="Error details",
    )
