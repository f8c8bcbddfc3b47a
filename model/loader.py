"""Model loader for the emotion classifier.

The loader fetches the label manifest and the TorchScript archive from an
artifact source, validates that the model's output dimension matches the
manifest, and holds the loaded model until dispose() is called.

At most one load is in flight per loader. Concurrent callers of load()
await the same task, and a caller that stops waiting does not abort the
load for the others. A failed load is not cached: the next load() retries.

Example:
    >>> loader = ModelLoader("models/emotion")
    >>> await loader.load()
    >>> loader.is_ready()
    True
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import torch

from faceio.types import InputTensor

from .errors import LoadError, NotReadyError
from .labels import DEFAULT_MODEL_NAME, LabelManifest, parse_manifest
from .sources import ArtifactFetchError, ArtifactSource, source_from_uri
from .tensors import score_vector, to_model_layout
from .types import ModelHandle, PipelineState


logger = logging.getLogger(__name__)


@dataclass
class LoaderConfig:
    """Configuration for model loading.

    Attributes:
        manifest_name: File name of the label manifest within the source.
        device: Device to load the model on ("cpu" or "cuda").
    """

    manifest_name: str = "model_info.json"
    device: str = "cpu"


class ModelLoader:
    """Loads and owns the emotion model and its label manifest.

    Attributes:
        source: Where the manifest and model archive are fetched from.
        config: Loader configuration.
    """

    def __init__(
        self,
        source: ArtifactSource | str | Path,
        config: LoaderConfig | None = None,
    ) -> None:
        if isinstance(source, (str, Path)):
            source = source_from_uri(source)
        self.source = source
        self.config = config or LoaderConfig()
        self._state = PipelineState.UNINITIALIZED
        self._manifest: LabelManifest | None = None
        self._handle: ModelHandle | None = None
        self._load_task: asyncio.Task | None = None
        self._detached_task: asyncio.Task | None = None
        self._last_error: LoadError | None = None
        # Bumped by dispose() so a load started earlier is not installed
        self._generation = 0

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def last_error(self) -> LoadError | None:
        """Error from the most recent failed load, cleared on success."""
        return self._last_error

    def is_ready(self) -> bool:
        """True once the manifest and model are loaded and shape-validated."""
        return self._state is PipelineState.READY and self._handle is not None and self._manifest is not None

    @property
    def manifest(self) -> LabelManifest:
        """The loaded label manifest.

        Raises:
            NotReadyError: If the loader is not ready.
        """
        self._require_ready()
        return self._manifest

    @property
    def handle(self) -> ModelHandle:
        """The loaded model handle.

        Raises:
            NotReadyError: If the loader is not ready.
        """
        self._require_ready()
        return self._handle

    @property
    def labels(self) -> tuple[str, ...]:
        return self.manifest.labels

    async def load(self) -> None:
        """Load the manifest and model, or join a load already in flight.

        Returns immediately if the loader is already ready.

        Raises:
            LoadError: If fetching, parsing or validation fails.
        """
        if self.is_ready():
            return

        detached = self._detached_task
        if self._load_task is None and detached is not None and not detached.done():
            # A load abandoned by dispose() still holds its fetch; let it finish first
            await asyncio.wait({detached})
        if self._detached_task is detached:
            self._detached_task = None

        if self.is_ready():
            return

        if self._load_task is None:
            self._state = PipelineState.LOADING
            self._load_task = asyncio.create_task(self._load(self._generation))
            self._load_task.add_done_callback(_consume_task_exception)

        await asyncio.shield(self._load_task)

    async def wait_for_ready(self) -> None:
        """Await readiness, starting a load if none has succeeded yet."""
        await self.load()

    def dispose(self) -> None:
        """Release the model and reset to not-ready.

        A load in flight still completes for the callers awaiting it, but
        its model is released instead of installed. The next load() waits
        for it to finish, so at most one load is ever fetching.
        """
        self._generation += 1
        if self._load_task is not None and not self._load_task.done():
            self._detached_task = self._load_task
        if self._handle is not None:
            self._handle.dispose()
            logger.info("Model disposed: name=%s", self._handle.name)
        self._handle = None
        self._manifest = None
        self._load_task = None
        self._last_error = None
        self._state = PipelineState.UNINITIALIZED

    async def _load(self, generation: int) -> None:
        logger.info(
            "Loading model: source=%s manifest=%s device=%s",
            self.source.location,
            self.config.manifest_name,
            self.config.device,
        )
        try:
            manifest, handle = await self._fetch_and_validate()
        except LoadError as e:
            self._fail(generation, e)
            raise
        except Exception as e:
            error = LoadError(
                message=f"Unexpected error while loading model: {e}",
                code="LOAD_FAILED",
                details={"error": str(e), "exception_type": type(e).__name__},
            )
            self._fail(generation, error)
            raise error from e

        if generation != self._generation:
            handle.dispose()
            logger.info("Discarding model loaded before dispose(): name=%s", handle.name)
            return

        self._manifest = manifest
        self._handle = handle
        self._last_error = None
        self._load_task = None
        self._state = PipelineState.READY
        logger.info(
            "Model loaded successfully: name=%s labels=%d device=%s",
            manifest.name,
            len(manifest),
            handle.device,
        )

    def _fail(self, generation: int, error: LoadError) -> None:
        if generation == self._generation:
            self._state = PipelineState.FAILED
            self._last_error = error
            self._load_task = None
        logger.error("Model load failed: code=%s message=%s", error.code, error.message)

    async def _fetch_and_validate(self) -> tuple[LabelManifest, ModelHandle]:
        device = self._resolve_device()

        try:
            raw_manifest = await self.source.fetch(self.config.manifest_name)
        except ArtifactFetchError as e:
            raise LoadError(
                message=f"Failed to fetch label manifest: {e.message}",
                code="MANIFEST_FETCH_FAILED",
                details={"source": self.source.location, **e.details},
            ) from e

        manifest = parse_manifest(raw_manifest, default_name=self._default_model_name())

        try:
            raw_model = await self.source.fetch(manifest.model_file)
        except ArtifactFetchError as e:
            raise LoadError(
                message=f"Failed to fetch model archive: {e.message}",
                code="MODEL_FETCH_FAILED",
                details={"source": self.source.location, **e.details},
            ) from e

        module = await asyncio.to_thread(_deserialize, raw_model, device)
        handle = ModelHandle(module=module, device=device, output_dim=0, name=manifest.name)

        try:
            handle.output_dim = await asyncio.to_thread(_validate_output, module, manifest, device)
        except LoadError:
            handle.dispose()
            raise

        return manifest, handle

    def _default_model_name(self) -> str:
        # Last path segment of the source: "models/fer-v2" -> "fer-v2"
        name = PurePosixPath(self.source.location.replace("\\", "/").rstrip("/")).name
        return name or DEFAULT_MODEL_NAME

    def _resolve_device(self) -> torch.device:
        device = torch.device(self.config.device)
        if device.type == "cuda" and not torch.cuda.is_available():
            raise LoadError(
                message="CUDA device requested but not available",
                code="DEVICE_UNAVAILABLE",
                details={"device": self.config.device},
            )
        return device

    def _require_ready(self) -> None:
        if not self.is_ready():
            raise NotReadyError(
                message="Model is not loaded; await load() first",
                code="MODEL_NOT_READY",
                details={"state": self._state.value},
            )


def _deserialize(data: bytes, device: torch.device) -> torch.nn.Module:
    """Deserialize a TorchScript archive onto the given device."""
    try:
        module = torch.jit.load(io.BytesIO(data), map_location=device)
    except Exception as e:
        raise LoadError(
            message=f"Failed to deserialize model archive: {e}",
            code="MODEL_INVALID",
            details={"bytes_length": len(data), "error": str(e)},
        ) from e
    module.eval()
    return module


def _validate_output(
    module: torch.nn.Module,
    manifest: LabelManifest,
    device: torch.device,
) -> int:
    """Run one forward pass on a zero input and check the output dimension."""
    try:
        with torch.inference_mode():
            dummy = torch.zeros(InputTensor.SHAPE, dtype=torch.float32, device=device)
            output = module(to_model_layout(dummy, manifest.input_layout))
    except Exception as e:
        raise LoadError(
            message=f"Model failed the validation forward pass: {e}",
            code="VALIDATION_FAILED",
            details={"input_shape": list(InputTensor.SHAPE), "error": str(e)},
        ) from e

    scores = score_vector(output)
    if scores is None:
        shape = list(output.shape) if isinstance(output, torch.Tensor) else type(output).__name__
        raise LoadError(
            message="Model output must be a tensor shaped [N] or [1, N]",
            code="SHAPE_MISMATCH",
            details={"output_shape": shape, "num_labels": len(manifest)},
        )

    output_dim = int(scores.shape[0])
    if output_dim != len(manifest):
        raise LoadError(
            message=f"Model outputs {output_dim} scores but the manifest lists {len(manifest)} labels",
            code="SHAPE_MISMATCH",
            details={"output_dim": output_dim, "num_labels": len(manifest)},
        )

    return output_dim


def _consume_task_exception(task: asyncio.Task) -> None:
    # Every caller may have stopped waiting; keep asyncio from warning
    if not task.cancelled():
        task.exception()
