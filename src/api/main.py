"""FastAPI application for facial emotion recognition.

This module provides the main FastAPI application with endpoints for:
- GET /health: Service health and model readiness
- GET /labels: Emotion labels in model output order
- POST /predict: Emotion prediction for an uploaded image file
- POST /capture: Emotion prediction for a webcam snapshot data URL

Example:
    Run with uvicorn:

    $ uvicorn src.api.main:app --host 0.0.0.0 --port 8000
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Annotated, Any, Awaitable, Callable

from fastapi import Depends, FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from model import EmotionPipeline, LoadError, PipelineState, PredictionResult

from .config import Settings, get_settings
from .deps import build_pipeline, get_app_settings, get_pipeline
from .errors import InvalidInputError, PayloadTooLargeError, register_exception_handlers
from .logging import add_middleware, setup_logging
from .schemas import HealthResponse, LabelsResponse, PredictResponse


logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events.

    Startup:
        - Initialize logging
        - Load the model so the first request does not pay for it.
          A failed load is logged and retried on the next prediction.

    Shutdown:
        - Dispose of the model
    """
    settings: Settings = app.state.settings
    pipeline: EmotionPipeline = app.state.pipeline

    setup_logging(settings.log_level)
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    if settings.preload_model:
        try:
            await pipeline.wait_for_ready()
        except LoadError as e:
            logger.error(
                "Model preload failed, serving as unavailable: code=%s message=%s",
                e.code,
                e.message,
            )
    logger.info("Application startup complete")

    yield

    pipeline.loader.dispose()
    logger.info("Application shutdown")


# =============================================================================
# Application Factory
# =============================================================================


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application owning its own pipeline.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Facial Emotion Recognition API - Predict the emotion shown in a face image.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pipeline = build_pipeline(settings)

    # Browser capture pages are served from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_middleware(app)
    register_exception_handlers(app)
    register_routes(app)

    return app


def register_routes(app: FastAPI) -> None:
    """Register all API routes on the application."""

    # =========================================================================
    # System Endpoints
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
        description="Check service health and model readiness.",
    )
    async def health(
        settings: Annotated[Settings, Depends(get_app_settings)],
        pipeline: Annotated[EmotionPipeline, Depends(get_pipeline)],
    ) -> HealthResponse:
        loader = pipeline.loader

        if pipeline.is_ready():
            return HealthResponse(
                status="ok",
                state=pipeline.state.value,
                model_name=loader.manifest.name,
                device=settings.device,
                labels=list(loader.labels),
            )

        failed = pipeline.state is PipelineState.FAILED
        last_error = loader.last_error
        return HealthResponse(
            status="unavailable" if failed else "loading",
            state=pipeline.state.value,
            device=settings.device,
            error=last_error.code if last_error is not None else None,
        )

    @app.get(
        "/labels",
        response_model=LabelsResponse,
        tags=["System"],
        summary="Emotion labels",
        description="List the emotion labels in model output order.",
    )
    async def labels(
        pipeline: Annotated[EmotionPipeline, Depends(get_pipeline)],
    ) -> LabelsResponse:
        return LabelsResponse(labels=list(pipeline.loader.labels))

    # =========================================================================
    # Prediction Endpoints
    # =========================================================================

    @app.post(
        "/predict",
        response_model=PredictResponse,
        tags=["Prediction"],
        summary="Predict emotion from an image file",
        description="Predict the facial emotion shown in an uploaded image.",
    )
    async def predict(
        file: Annotated[UploadFile, File(description="Image file (PNG, JPEG, ...)")],
        settings: Annotated[Settings, Depends(get_app_settings)],
        pipeline: Annotated[EmotionPipeline, Depends(get_pipeline)],
        include_probabilities: Annotated[
            bool | None,
            Form(description="Include per-label scores"),
        ] = None,
    ) -> PredictResponse:
        image_bytes = await file.read()

        if not image_bytes:
            raise InvalidInputError(
                message="Empty file uploaded",
                details={"filename": file.filename},
            )
        _check_upload_size(len(image_bytes), settings)

        result = await _run_prediction(pipeline, pipeline.detect_emotion_bytes, image_bytes)
        return _to_response(result, include_probabilities, settings)

    @app.post(
        "/capture",
        response_model=PredictResponse,
        tags=["Prediction"],
        summary="Predict emotion from a webcam snapshot",
        description="Predict the facial emotion in a base64 image data URL, as returned by a webcam screenshot.",
    )
    async def capture(
        image: Annotated[str, Form(description="data:image/...;base64,... URL")],
        settings: Annotated[Settings, Depends(get_app_settings)],
        pipeline: Annotated[EmotionPipeline, Depends(get_pipeline)],
        include_probabilities: Annotated[
            bool | None,
            Form(description="Include per-label scores"),
        ] = None,
    ) -> PredictResponse:
        if not image.strip():
            raise InvalidInputError(message="Empty image data URL")
        # base64 inflates the payload by a third
        _check_upload_size(len(image) * 3 // 4, settings)

        result = await _run_prediction(pipeline, pipeline.detect_emotion_data_url, image)
        return _to_response(result, include_probabilities, settings)


def _check_upload_size(size: int, settings: Settings) -> None:
    if size > settings.max_upload_bytes:
        raise PayloadTooLargeError(
            message=f"Upload of {size} bytes exceeds the {settings.max_upload_bytes} byte limit",
            details={"size": size, "max_upload_bytes": settings.max_upload_bytes},
        )


async def _run_prediction(
    pipeline: EmotionPipeline,
    detect: Callable[[Any], Awaitable[PredictionResult]],
    payload: Any,
) -> PredictionResult:
    # Retries a failed startup load; a no-op once ready
    await pipeline.wait_for_ready()

    start_time = time.perf_counter()
    result = await detect(payload)
    inference_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "Prediction complete: emotion=%s confidence=%.3f inference_ms=%.2f",
        result.emotion,
        result.confidence,
        inference_ms,
    )
    return result


def _to_response(
    result: PredictionResult,
    include_probabilities: bool | None,
    settings: Settings,
) -> PredictResponse:
    if include_probabilities is None:
        include_probabilities = settings.include_probabilities_default

    return PredictResponse(
        emotion=result.emotion,
        confidence=float(result.confidence),
        probabilities=dict(result.probabilities) if include_probabilities else None,
        model_name=result.model_name,
    )


# =============================================================================
# Application Instance
# =============================================================================


app = create_app()
