"""Configuration management for the emotion recognition API.

This module provides centralized configuration using pydantic-settings,
loading values from environment variables with sensible defaults.

Example:
    >>> from src.api.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.model_source)
    models/emotion
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Environment variables use uppercase names matching the attribute names.

    Attributes:
        app_name: Name of the application for OpenAPI docs.
        app_version: API version string.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        model_source: Directory or http(s) URL holding the manifest and model.
        manifest_name: File name of the label manifest.
        device: Device for model inference ("cpu" or "cuda").
        fetch_timeout_sec: Timeout for fetching artifacts over HTTP.
        preload_model: Whether to start loading the model at startup.
        max_upload_bytes: Largest accepted image upload.
        max_image_pixels: Largest accepted decoded image (width * height).
        include_probabilities_default: Whether to include per-label scores by default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    # Application settings
    app_name: str = "Facial Emotion Service"
    app_version: str = "1.0.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Model settings
    model_source: str = "models/emotion"
    manifest_name: str = "model_info.json"
    device: Literal["cpu", "cuda"] = "cpu"
    fetch_timeout_sec: float = 60.0
    preload_model: bool = True

    # Image settings
    max_upload_bytes: int = 10 * 1024 * 1024
    max_image_pixels: int = 40_000_000

    # Response defaults
    include_probabilities_default: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.

    Returns:
        Settings instance with values from environment.
    """
    return Settings()
