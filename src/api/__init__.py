"""FastAPI application for Facial Emotion Recognition.

This module provides a REST API with endpoints for:
- /health: Service health and model readiness
- /labels: Emotion labels
- /predict: Emotion prediction for an uploaded image
- /capture: Emotion prediction for a webcam snapshot

Example:
    To run the API server:

    $ uvicorn src.api.main:app --host 0.0.0.0 --port 8000
"""

from .main import app

__all__ = ["app"]
