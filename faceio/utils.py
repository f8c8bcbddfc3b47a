"""Utility functions and configuration for image I/O."""

from dataclasses import dataclass

import numpy as np
import torch

from .errors import PreprocessError
from .types import INPUT_SIZE


# ITU-R BT.601 luma coefficients (R, G, B)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


@dataclass
class ImageConfig:
    """Configuration for image decoding and preprocessing.

    Attributes:
        target_size: Edge length of the square model input.
        max_pixels: Largest decoded image (width * height) accepted.
        apply_exif_orientation: Whether to honour EXIF rotation when decoding.
    """

    target_size: int = INPUT_SIZE
    max_pixels: int = 40_000_000
    apply_exif_orientation: bool = True


def to_unit_range(pixels: np.ndarray) -> np.ndarray:
    """Scale pixel values to float32 on the closed interval [0, 1].

    Integer data is divided by the maximum of its dtype (255 for uint8),
    boolean data maps to {0, 1}, float data is assumed to already be on
    [0, 1] and is clamped.

    Raises:
        PreprocessError: If the dtype is unsupported or floats are non-finite.

    Examples:
        >>> to_unit_range(np.array([0, 255], dtype=np.uint8))
        array([0., 1.], dtype=float32)
    """
    if pixels.dtype == np.bool_:
        return pixels.astype(np.float32)

    if np.issubdtype(pixels.dtype, np.integer):
        max_value = float(np.iinfo(pixels.dtype).max)
        scaled = np.clip(pixels.astype(np.float64), 0.0, max_value) / max_value
        return scaled.astype(np.float32)

    if np.issubdtype(pixels.dtype, np.floating):
        if not np.isfinite(pixels).all():
            raise PreprocessError(
                message="Image contains non-finite pixel values (NaN or Inf)",
                code="NON_FINITE",
                details={"nan_count": int(np.isnan(pixels).sum())},
            )
        return np.clip(pixels, 0.0, 1.0).astype(np.float32)

    raise PreprocessError(
        message=f"Unsupported pixel dtype: {pixels.dtype}",
        code="INVALID_DTYPE",
        details={"dtype": str(pixels.dtype)},
    )


def to_luma(images: torch.Tensor) -> torch.Tensor:
    """Collapse a [N, C, H, W] batch to a single intensity channel.

    1 channel is returned as-is, 2 channels are gray+alpha (alpha dropped),
    3 and 4 channels are RGB(A) weighted with the BT.601 luma coefficients.
    """
    num_channels = images.shape[1]
    if num_channels <= 2:
        return images[:, :1]
    weights = torch.tensor(LUMA_WEIGHTS, dtype=images.dtype, device=images.device)
    return (images[:, :3] * weights.view(1, 3, 1, 1)).sum(dim=1, keepdim=True)
