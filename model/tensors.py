"""Helpers shared by the loader's shape check and the inference path."""

import torch


def to_model_layout(batch: torch.Tensor, input_layout: str) -> torch.Tensor:
    """Arrange a [1, H, W, 1] batch the way the model expects it."""
    if input_layout == "nchw":
        return batch.permute(0, 3, 1, 2).contiguous()
    return batch


def score_vector(output) -> torch.Tensor | None:
    """Extract the 1-D score vector from a forward-pass output.

    Accepts a tensor shaped [N] or [1, N]. Returns None for anything else
    (tuples, dicts, real batches, scalars).
    """
    if not isinstance(output, torch.Tensor):
        return None
    if output.ndim == 2 and output.shape[0] == 1:
        return output[0]
    if output.ndim == 1:
        return output
    return None
