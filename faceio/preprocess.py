"""Image preprocessing functions."""

import numpy as np
import torch
import torch.nn.functional as F

from .errors import PreprocessError
from .types import INPUT_SIZE, InputTensor, RawImage
from .utils import to_luma, to_unit_range


SUPPORTED_CHANNELS = (1, 2, 3, 4)


def preprocess_image(
    image: RawImage | np.ndarray,
    target_size: int = INPUT_SIZE,
) -> InputTensor:
    """Preprocess an image to the canonical model input.

    Converts any supported pixel surface to a deterministic tensor:
    - Scaled to [0, 1]
    - Resampled to target_size x target_size (bilinear, antialiased)
    - Single intensity channel (BT.601 luma for colour input)
    - Float32, shape [1, target_size, target_size, 1]

    Args:
        image: RawImage or array with shape [H, W] or [H, W, C].
        target_size: Output edge length in pixels.

    Returns:
        InputTensor wrapping the preprocessed buffer.

    Raises:
        PreprocessError: If the image is empty or has an unsupported layout.

    Examples:
        >>> import numpy as np
        >>> frame = np.zeros((480, 640, 3), dtype=np.uint8)
        >>> preprocess_image(frame).shape
        (1, 48, 48, 1)
    """
    pixels = image.pixels if isinstance(image, RawImage) else np.asarray(image)

    if pixels.size == 0:
        raise PreprocessError(
            message="Image is empty (no pixels)",
            code="EMPTY_IMAGE",
            details={"shape": list(pixels.shape)},
        )

    if pixels.ndim == 2:
        pixels = pixels[:, :, np.newaxis]

    if pixels.ndim != 3:
        raise PreprocessError(
            message=f"Expected pixel array [H, W] or [H, W, C], got shape {list(pixels.shape)}",
            code="INVALID_SHAPE",
            details={"shape": list(pixels.shape)},
        )

    num_channels = pixels.shape[2]
    if num_channels not in SUPPORTED_CHANNELS:
        raise PreprocessError(
            message=f"Cannot convert {num_channels}-channel image to grayscale",
            code="UNSUPPORTED_CHANNELS",
            details={"channels": num_channels, "supported": list(SUPPORTED_CHANNELS)},
        )

    unit = to_unit_range(pixels)

    # [H, W, C] -> [1, C, H, W] for interpolation
    batch = torch.from_numpy(np.ascontiguousarray(unit)).permute(2, 0, 1).unsqueeze(0)

    resized = F.interpolate(
        batch,
        size=(target_size, target_size),
        mode="bilinear",
        align_corners=False,
        antialias=True,
    )

    gray = to_luma(resized).clamp(0.0, 1.0)

    # [1, 1, S, S] -> [1, S, S, 1]
    data = gray.permute(0, 2, 3, 1).contiguous().to(dtype=torch.float32)

    return InputTensor(data)
