"""Type definitions for image inputs and model input tensors."""

from dataclasses import dataclass
from typing import Final

import numpy as np
import torch


# Edge length of the square grayscale input the emotion CNN expects
INPUT_SIZE: Final[int] = 48


@dataclass(frozen=True)
class RawImage:
    """An in-memory pixel surface handed over by a capture surface.

    The pipeline treats the pixels as read-only and never mutates them.

    Attributes:
        pixels: Array with shape [H, W, C] (or [H, W] for grayscale).
            Integer data is interpreted on its dtype's full range, float
            data on [0, 1].
    """

    pixels: np.ndarray

    @classmethod
    def from_array(cls, pixels) -> "RawImage":
        """Wrap any array-like (numpy array, nested lists) as a RawImage."""
        return cls(pixels=np.asarray(pixels))

    @property
    def height(self) -> int:
        """Number of pixel rows (0 for malformed arrays)."""
        return int(self.pixels.shape[0]) if self.pixels.ndim >= 2 else 0

    @property
    def width(self) -> int:
        """Number of pixel columns (0 for malformed arrays)."""
        return int(self.pixels.shape[1]) if self.pixels.ndim >= 2 else 0

    @property
    def channels(self) -> int:
        """Number of channels per pixel."""
        if self.pixels.ndim == 2:
            return 1
        if self.pixels.ndim == 3:
            return int(self.pixels.shape[2])
        return 0

    @property
    def is_empty(self) -> bool:
        """True when the surface has no pixels at all."""
        return self.pixels.size == 0 or self.height == 0 or self.width == 0


class InputTensor:
    """Ephemeral [1, 48, 48, 1] float32 buffer fed to one forward pass.

    Use it as a context manager so the underlying tensor is released as soon
    as the block exits, whether or not the block raised:

        >>> with preprocess_image(image) as tensor:
        ...     scores = model(tensor.data)
        >>> tensor.released
        True
    """

    SHAPE: Final[tuple[int, int, int, int]] = (1, INPUT_SIZE, INPUT_SIZE, 1)

    def __init__(self, data: torch.Tensor) -> None:
        self._data: torch.Tensor | None = data

    @property
    def data(self) -> torch.Tensor:
        """The underlying tensor.

        Raises:
            RuntimeError: If the tensor has already been released.
        """
        if self._data is None:
            raise RuntimeError("InputTensor has been released")
        return self._data

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(self.data.shape)

    @property
    def released(self) -> bool:
        return self._data is None

    def release(self) -> None:
        """Drop the reference to the tensor. Safe to call more than once."""
        self._data = None

    def __enter__(self) -> "InputTensor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        if self._data is None:
            return "InputTensor(released)"
        return f"InputTensor(shape={list(self._data.shape)})"
