"""Image I/O module for loading and preprocessing face images.

This module provides the capture-side half of the emotion pipeline.
It handles:
- Decoding images from files, uploaded bytes or webcam data URLs
- Preprocessing to the canonical model input (48x48, grayscale, [0, 1])

Example:
    >>> from faceio import load_and_preprocess, ImageConfig
    >>> with load_and_preprocess("face.jpg") as tensor:
    ...     tensor.shape
    (1, 48, 48, 1)
"""

from pathlib import Path
from typing import Union

from .errors import ImageDecodeError, ImageIOError, PreprocessError
from .loader import decode_data_url, load_image, load_image_bytes
from .preprocess import preprocess_image
from .types import INPUT_SIZE, InputTensor, RawImage
from .utils import ImageConfig, to_luma, to_unit_range


__all__ = [
    # Main integration functions
    "decode_image",
    "load_and_preprocess",
    # Config and types
    "ImageConfig",
    "RawImage",
    "InputTensor",
    "INPUT_SIZE",
    # Errors
    "ImageIOError",
    "ImageDecodeError",
    "PreprocessError",
    # Loader
    "load_image",
    "load_image_bytes",
    "decode_data_url",
    # Preprocessing
    "preprocess_image",
    # Utils
    "to_luma",
    "to_unit_range",
]


def decode_image(
    path_or_bytes: Union[str, Path, bytes],
    config: ImageConfig | None = None,
) -> RawImage:
    """Decode an image from a path, raw bytes or a ``data:`` URL string.

    Args:
        path_or_bytes: File path (str/Path), encoded bytes, or a webcam
            snapshot data URL.
        config: Image configuration. If None, uses default ImageConfig().

    Raises:
        ImageDecodeError: If the image cannot be loaded/decoded.
    """
    if isinstance(path_or_bytes, bytes):
        return load_image_bytes(path_or_bytes, config)
    if isinstance(path_or_bytes, str) and path_or_bytes.startswith("data:"):
        return decode_data_url(path_or_bytes, config)
    return load_image(path_or_bytes, config)


def load_and_preprocess(
    path_or_bytes: Union[str, Path, bytes],
    config: ImageConfig | None = None,
) -> InputTensor:
    """Decode and preprocess an image in one step.

    Raises:
        ImageDecodeError: If the image cannot be loaded/decoded.
        PreprocessError: If preprocessing fails.
    """
    if config is None:
        config = ImageConfig()

    image = decode_image(path_or_bytes, config)
    return preprocess_image(image, target_size=config.target_size)
