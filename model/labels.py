"""Label manifest parsing.

The manifest is a small JSON file shipped next to the model archive:

    {
        "name": "fer2013-cnn",
        "labels": ["angry", "disgust", "fear", "happy", "neutral", "sad", "surprise"],
        "model_file": "model.pt",
        "input_layout": "nhwc"
    }

Only ``labels`` is required. The order of ``labels`` must match the order of
the model's output vector: index i of the output is the score for labels[i].
"""

import json
from dataclasses import dataclass
from typing import Any, Final

from .errors import LoadError


DEFAULT_MODEL_FILE: Final[str] = "model.pt"
DEFAULT_MODEL_NAME: Final[str] = "emotion-cnn"
INPUT_LAYOUTS: Final[set[str]] = {"nhwc", "nchw"}


@dataclass(frozen=True)
class LabelManifest:
    """Parsed label manifest.

    Attributes:
        labels: Emotion labels, index-aligned with the model output.
        model_file: Name of the TorchScript archive relative to the manifest.
        name: Model name reported in predictions.
        input_layout: "nhwc" feeds [1, 48, 48, 1] as-is, "nchw" feeds [1, 1, 48, 48].
    """

    labels: tuple[str, ...]
    model_file: str = DEFAULT_MODEL_FILE
    name: str = DEFAULT_MODEL_NAME
    input_layout: str = "nhwc"

    def __len__(self) -> int:
        return len(self.labels)


def parse_manifest(
    raw: bytes | str | dict[str, Any],
    default_name: str = DEFAULT_MODEL_NAME,
) -> LabelManifest:
    """Parse and validate a label manifest.

    Args:
        raw: Manifest JSON as bytes/str, or an already decoded dict.
        default_name: Model name used when the manifest has no "name".

    Returns:
        Validated LabelManifest.

    Raises:
        LoadError: With code MANIFEST_INVALID if the JSON is malformed or
            any field has the wrong type.

    Examples:
        >>> parse_manifest('{"labels": ["angry", "happy", "sad"]}').labels
        ('angry', 'happy', 'sad')
    """
    if isinstance(raw, dict):
        data = raw
    else:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise LoadError(
                message=f"Manifest is not valid JSON: {e}",
                code="MANIFEST_INVALID",
                details={"error": str(e)},
            ) from e

    if not isinstance(data, dict):
        raise LoadError(
            message=f"Manifest must be a JSON object, got {type(data).__name__}",
            code="MANIFEST_INVALID",
            details={"type": type(data).__name__},
        )

    labels = data.get("labels")
    if not isinstance(labels, list) or not labels:
        raise LoadError(
            message="Manifest field 'labels' must be a non-empty list of strings",
            code="MANIFEST_INVALID",
            details={"labels": labels if labels is None else type(labels).__name__},
        )

    bad = [label for label in labels if not isinstance(label, str) or not label]
    if bad:
        raise LoadError(
            message="Manifest labels must all be non-empty strings",
            code="MANIFEST_INVALID",
            details={"invalid_labels": [repr(label) for label in bad]},
        )

    if len(set(labels)) != len(labels):
        raise LoadError(
            message="Manifest labels must be unique",
            code="MANIFEST_INVALID",
            details={"labels": labels},
        )

    model_file = data.get("model_file", DEFAULT_MODEL_FILE)
    name = data.get("name", default_name)
    input_layout = data.get("input_layout", "nhwc")

    for field_name, value in (("model_file", model_file), ("name", name)):
        if not isinstance(value, str) or not value:
            raise LoadError(
                message=f"Manifest field '{field_name}' must be a non-empty string",
                code="MANIFEST_INVALID",
                details={field_name: repr(value)},
            )

    if not isinstance(input_layout, str) or input_layout not in INPUT_LAYOUTS:
        raise LoadError(
            message=f"Manifest field 'input_layout' must be one of {sorted(INPUT_LAYOUTS)}",
            code="MANIFEST_INVALID",
            details={"input_layout": repr(input_layout)},
        )

    return LabelManifest(
        labels=tuple(labels),
        model_file=model_file,
        name=name,
        input_layout=input_layout,
    )
