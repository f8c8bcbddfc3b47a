"""Pytest configuration and fixtures for the test suite."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure project root is in path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.fixtures import write_model_dir  # noqa: E402


THREE_LABELS = ["angry", "happy", "sad"]


@pytest.fixture
def labels() -> list[str]:
    """Labels of the small three-class test model."""
    return list(THREE_LABELS)


@pytest.fixture
def model_dir(tmp_path: Path) -> Path:
    """Model directory whose model always scores [0.1, 0.7, 0.2].

    Returns:
        Directory containing model_info.json and model.pt.
    """
    return write_model_dir(
        tmp_path / "model",
        THREE_LABELS,
        scores=[0.1, 0.7, 0.2],
        name="test-cnn",
    )


@pytest.fixture
def rgb_frame() -> np.ndarray:
    """A 480x640 RGB webcam-sized frame with random content.

    Returns:
        uint8 array shaped [480, 640, 3].
    """
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, size=(480, 640, 3), dtype=np.uint8)
