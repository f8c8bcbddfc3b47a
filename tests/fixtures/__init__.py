"""Test fixtures for image and model tests.

This module provides utilities for generating in-memory images, TorchScript
models and model directories for testing. No binary files are committed;
fixtures are generated programmatically.
"""

import asyncio
import io
import json
from collections import Counter
from pathlib import Path

import numpy as np
import torch
from PIL import Image
from torch import nn


# =============================================================================
# TorchScript models
# =============================================================================


class ConstantScores(nn.Module):
    """Returns the same score vector for every input."""

    def __init__(self, scores: list[float]) -> None:
        super().__init__()
        # float64 so scores come back exactly as written in the test
        self.register_buffer("scores", torch.tensor([scores], dtype=torch.float64))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.scores.expand(x.shape[0], -1)


class FailOnNonZeroInput(nn.Module):
    """Passes the zero-input validation pass, then raises on real images."""

    def __init__(self, num_labels: int) -> None:
        super().__init__()
        self.num_labels = num_labels

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        if bool(x.abs().sum() > 0):
            raise RuntimeError("forward pass exploded")
        return torch.zeros(1, self.num_labels)


class WrongSizeOnNonZeroInput(nn.Module):
    """Passes validation, then returns one score too many on real images."""

    def __init__(self, num_labels: int) -> None:
        super().__init__()
        self.num_labels = num_labels

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        if bool(x.abs().sum() > 0):
            return torch.zeros(1, self.num_labels + 1)
        return torch.zeros(1, self.num_labels)


class LayoutProbe(nn.Module):
    """Raises unless the input is [1, 48, 48, 1] (nhwc) or [1, 1, 48, 48] (nchw)."""

    def __init__(self, channels_first: bool, num_labels: int) -> None:
        super().__init__()
        self.channels_first = channels_first
        self.num_labels = num_labels

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        channel_dim = 1 if self.channels_first else 3
        if x.shape[channel_dim] != 1:
            raise RuntimeError("unexpected input layout")
        return torch.ones(1, self.num_labels) / self.num_labels


class MeanIntensity(nn.Module):
    """Scores [1 - mean, mean] so tests can observe the preprocessed input."""

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        mean = x.mean()
        return torch.stack([torch.ones_like(mean) - mean, mean]).unsqueeze(0)


def scripted_model_bytes(module: nn.Module) -> bytes:
    """Script a module and serialize it as a TorchScript archive."""
    buffer = io.BytesIO()
    torch.jit.save(torch.jit.script(module), buffer)
    return buffer.getvalue()


def constant_model_bytes(scores: list[float]) -> bytes:
    """TorchScript archive of a model that always returns ``scores``."""
    return scripted_model_bytes(ConstantScores(scores))


def write_model_dir(
    directory: Path,
    labels: list[str],
    model_bytes: bytes | None = None,
    scores: list[float] | None = None,
    **manifest_fields,
) -> Path:
    """Write model_info.json and model.pt into ``directory``.

    Args:
        directory: Target directory (created if missing).
        labels: Labels written to the manifest.
        model_bytes: TorchScript archive. Defaults to a constant-score model.
        scores: Scores for the default constant model (uniform if None).
        **manifest_fields: Extra manifest fields (name, model_file, input_layout).

    Returns:
        The directory path.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    if model_bytes is None:
        if scores is None:
            scores = [1.0 / len(labels)] * len(labels)
        model_bytes = constant_model_bytes(scores)

    manifest = {"labels": labels, **manifest_fields}
    (directory / "model_info.json").write_text(json.dumps(manifest), encoding="utf-8")
    (directory / manifest.get("model_file", "model.pt")).write_bytes(model_bytes)
    return directory


class CountingSource:
    """Artifact source wrapper that counts fetches per artifact name.

    ``max_in_flight`` records the most fetches that were running at once.
    """

    def __init__(self, inner, delay_sec: float = 0.0) -> None:
        self.inner = inner
        self.delay_sec = delay_sec
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def location(self) -> str:
        return self.inner.location

    async def fetch(self, name: str) -> bytes:
        self.calls[name] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay_sec:
                await asyncio.sleep(self.delay_sec)
            return await self.inner.fetch(name)
        finally:
            self.in_flight -= 1


# =============================================================================
# Images
# =============================================================================


def generate_image_bytes(
    width: int = 64,
    height: int = 64,
    mode: str = "RGB",
    color=(200, 120, 40),
    fmt: str = "PNG",
) -> bytes:
    """Generate a solid-colour image file as bytes."""
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def generate_gradient_array(
    width: int = 96,
    height: int = 64,
    channels: int = 3,
) -> np.ndarray:
    """Generate a uint8 horizontal gradient shaped [H, W, C]."""
    row = np.linspace(0, 255, width, dtype=np.float64)
    plane = np.tile(row, (height, 1))
    return np.repeat(plane[:, :, np.newaxis], channels, axis=2).astype(np.uint8)
