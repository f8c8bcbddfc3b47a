"""Custom exceptions for image I/O operations."""

from typing import Any


class ImageIOError(Exception):
    """Base exception for all image I/O errors.

    Attributes:
        message: Human-readable error description.
        code: Short error code string (e.g., "INVALID_IMAGE").
        details: Optional dictionary with additional context.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ImageIOError.

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


class ImageDecodeError(ImageIOError):
    """Raised when an image cannot be read or decoded.

    Common codes:
        - FILE_NOT_FOUND: Image file does not exist.
        - EMPTY_FILE: File or payload has zero bytes.
        - INVALID_IMAGE: Bytes are not a decodable image.
        - INVALID_DATA_URL: Webcam snapshot is not a base64 image data URL.
        - TOO_LARGE: Decoded image exceeds the configured pixel budget.
    """
    pass


class PreprocessError(ImageIOError):
    """Raised when an image cannot be turned into a model input tensor.

    Common codes:
        - EMPTY_IMAGE: Image has zero width, height or channels.
        - INVALID_SHAPE: Pixel array is not [H, W] or [H, W, C].
        - UNSUPPORTED_CHANNELS: Channel count is not 1, 2, 3 or 4.
        - INVALID_DTYPE: Pixel data is neither integer nor float.
        - NON_FINITE: Float pixel data contains NaN or Inf.
    """
    pass
