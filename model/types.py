"""Type definitions for model loading and inference."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

import torch


class PipelineState(str, Enum):
    """Lifecycle of a loader / pipeline instance.

    UNINITIALIZED -> LOADING -> READY -> (INFERRING -> READY)*
    LOADING -> FAILED, and FAILED -> LOADING on retry.
    """

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    INFERRING = "inferring"
    FAILED = "failed"


@dataclass(frozen=True)
class PredictionResult:
    """Result of emotion prediction on a single image.

    Attributes:
        emotion: Label with the highest score.
        confidence: Score of the predicted label (0.0 to 1.0).
        probabilities: Score for every label in manifest order. Reported as
            produced by the model, without re-normalization.
        model_name: Name of the model used for prediction.
    """

    emotion: str
    confidence: float
    probabilities: Mapping[str, float]
    model_name: str = ""

    def __post_init__(self) -> None:
        # Freeze the mapping so the result stays immutable
        object.__setattr__(self, "probabilities", MappingProxyType(dict(self.probabilities)))

    def ranked(self) -> list[tuple[str, float]]:
        """Return (label, score) pairs sorted by descending score.

        Equal scores keep manifest order.
        """
        return sorted(self.probabilities.items(), key=lambda item: -item[1])

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "emotion": self.emotion,
            "confidence": float(self.confidence),
            "probabilities": {k: float(v) for k, v in self.probabilities.items()},
            "model_name": self.model_name,
        }


@dataclass
class ModelHandle:
    """Opaque handle to a loaded network, owned by ModelLoader.

    Attributes:
        module: TorchScript module in eval mode.
        device: Device the module lives on.
        output_dim: Length of the output vector, checked at load time.
    """

    module: torch.nn.Module | None
    device: torch.device
    output_dim: int
    name: str = field(default="")

    @property
    def disposed(self) -> bool:
        return self.module is None

    def dispose(self) -> None:
        """Release the module and, on CUDA, the cached device memory."""
        self.module = None
        if self.device.type == "cuda":
            torch.cuda.empty_cache()
