"""Image loading functions for files, bytes and webcam data URLs."""

import base64
import binascii
import io
import re
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import ImageDecodeError
from .types import RawImage
from .utils import ImageConfig


# Modes whose pixel arrays map directly to 1-4 channel surfaces
_NATIVE_MODES = {"L", "LA", "RGB", "RGBA"}

_DATA_URL_PATTERN = re.compile(r"^data:(image/[\w.+-]+)?(;[\w-]+=[\w.+-]+)*;base64,", re.IGNORECASE)


def load_image(path: str | Path, config: ImageConfig | None = None) -> RawImage:
    """Load an image file from disk.

    Args:
        path: Path to a PNG, JPEG, BMP, WebP or any other Pillow-readable file.
        config: Decoding configuration. If None, uses default ImageConfig().

    Returns:
        RawImage with uint8 pixels shaped [H, W, C].

    Raises:
        ImageDecodeError: If the file is missing, empty or not an image.

    Examples:
        >>> image = load_image("face.jpg")
        >>> image.channels
        3
    """
    path = Path(path)

    if not path.exists():
        raise ImageDecodeError(
            message=f"Image file not found: {path}",
            code="FILE_NOT_FOUND",
            details={"path": str(path)},
        )

    data = path.read_bytes()
    if not data:
        raise ImageDecodeError(
            message=f"Image file is empty: {path}",
            code="EMPTY_FILE",
            details={"path": str(path)},
        )

    return _decode(data, config or ImageConfig(), source=str(path))


def load_image_bytes(data: bytes, config: ImageConfig | None = None) -> RawImage:
    """Load an image from raw encoded bytes (an uploaded file).

    Raises:
        ImageDecodeError: If the bytes are empty or cannot be decoded.
    """
    if not data:
        raise ImageDecodeError(
            message="Image data is empty",
            code="EMPTY_FILE",
            details={"bytes_length": 0},
        )

    return _decode(data, config or ImageConfig(), source="bytes")


def decode_data_url(data_url: str, config: ImageConfig | None = None) -> RawImage:
    """Decode a ``data:image/...;base64,...`` URL as produced by webcam screenshots.

    Raises:
        ImageDecodeError: If the URL is not a base64 image data URL.
    """
    match = _DATA_URL_PATTERN.match(data_url.strip()) if data_url else None
    if match is None:
        raise ImageDecodeError(
            message="Expected a base64-encoded image data URL",
            code="INVALID_DATA_URL",
            details={"prefix": (data_url or "")[:32]},
        )

    try:
        payload = base64.b64decode(data_url.strip()[match.end():], validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(
            message=f"Invalid base64 payload in data URL: {e}",
            code="INVALID_DATA_URL",
            details={"error": str(e)},
        ) from e

    return load_image_bytes(payload, config)


def _decode(data: bytes, config: ImageConfig, source: str) -> RawImage:
    """Decode encoded image bytes into a RawImage."""
    try:
        image = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(
            message=f"Failed to decode image: {e}",
            code="INVALID_IMAGE",
            details={"source": source, "bytes_length": len(data), "error": str(e)},
        ) from e

    with image:
        width, height = image.size
        if width * height > config.max_pixels:
            raise ImageDecodeError(
                message=f"Image too large: {width}x{height} exceeds {config.max_pixels} pixels",
                code="TOO_LARGE",
                details={"width": width, "height": height, "max_pixels": config.max_pixels},
            )

        try:
            image.load()
            if config.apply_exif_orientation:
                image = ImageOps.exif_transpose(image)
            image = _to_native_mode(image)
            pixels = np.array(image)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageDecodeError(
                message=f"Failed to decode image: {e}",
                code="INVALID_IMAGE",
                details={"source": source, "error": str(e)},
            ) from e

    if pixels.size == 0:
        raise ImageDecodeError(
            message="Image contains no pixels",
            code="INVALID_IMAGE",
            details={"source": source},
        )

    if pixels.ndim == 2:
        pixels = pixels[:, :, np.newaxis]

    return RawImage(pixels=pixels)


def _to_native_mode(image: Image.Image) -> Image.Image:
    """Convert palette, CMYK, 1-bit and high bit-depth modes to L/LA/RGB/RGBA."""
    if image.mode in _NATIVE_MODES:
        return image
    if image.mode == "P":
        return image.convert("RGBA" if "transparency" in image.info else "RGB")
    if image.mode in ("1", "F") or image.mode.startswith("I"):
        return image.convert("L")
    if image.mode.endswith("A"):
        return image.convert("RGBA")
    return image.convert("RGB")
