"""Custom exceptions for model loading and inference operations."""

from typing import Any


class ModelError(Exception):
    """Base exception for all model-related errors.

    Attributes:
        message: Human-readable error description.
        code: Short error code string (e.g., "SHAPE_MISMATCH").
        details: Optional dictionary with additional context.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ModelError.

        Args:
            message: Human-readable error description.
            code: Short error code string.
            details: Optional dictionary with additional context.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error string."""
        if self.details:
            return f"[{self.code}] {self.message} (details: {self.details})"
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        """Return repr string."""
        return f"{self.__class__.__name__}(message={self.message!r}, code={self.code!r}, details={self.details!r})"


class LoadError(ModelError):
    """Raised when the model or its label manifest fails to load.

    Common codes:
        - MANIFEST_FETCH_FAILED: Manifest file could not be fetched.
        - MANIFEST_INVALID: Manifest is not JSON or has no valid labels.
        - MODEL_FETCH_FAILED: Model archive could not be fetched.
        - MODEL_INVALID: Model archive could not be deserialized.
        - VALIDATION_FAILED: Dummy forward pass raised.
        - SHAPE_MISMATCH: Model output dimension differs from label count.
        - DEVICE_UNAVAILABLE: Requested CUDA device is not available.
        - LOAD_FAILED: Any other unexpected failure while loading.
    """
    pass


class NotReadyError(ModelError):
    """Raised when inference is attempted before a successful load.

    Common codes:
        - MODEL_NOT_READY: load() has not completed successfully.
    """
    pass


class InferenceError(ModelError):
    """Raised when inference fails.

    Common codes:
        - INFERENCE_FAILED: Model forward pass raised.
        - MALFORMED_OUTPUT: Output has the wrong size or non-finite values.
        - LABEL_MISMATCH: Score vector and labels differ in length.
    """
    pass
