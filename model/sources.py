"""Artifact sources for fetching the model archive and label manifest.

A source resolves artifact names (e.g. "model_info.json", "model.pt") to
bytes. Local directories and HTTP(S) servers are supported.

Example:
    >>> source = source_from_uri("models/emotion")
    >>> data = await source.fetch("model_info.json")
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol

import httpx


logger = logging.getLogger(__name__)


class ArtifactFetchError(Exception):
    """Raised when an artifact cannot be fetched from its source."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ArtifactSource(Protocol):
    """Protocol for anything that can fetch model artifacts by name."""

    @property
    def location(self) -> str:
        """Human-readable location used in logs and error details."""
        ...

    async def fetch(self, name: str) -> bytes:
        """Fetch an artifact's bytes.

        Raises:
            ArtifactFetchError: If the artifact is missing or unreadable.
        """
        ...


class LocalArtifactSource:
    """Reads artifacts from a directory on disk."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    @property
    def location(self) -> str:
        return str(self.directory)

    async def fetch(self, name: str) -> bytes:
        path = self.directory / name
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ArtifactFetchError(
                f"Cannot read {path}: {e.strerror or e}",
                details={"path": str(path)},
            ) from e


class HttpArtifactSource:
    """Fetches artifacts over HTTP(S) relative to a base URL."""

    def __init__(self, base_url: str, timeout: float = 60.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)

    @property
    def location(self) -> str:
        return self.base_url

    async def fetch(self, name: str) -> bytes:
        url = f"{self.base_url}/{name}"
        logger.debug("Fetching artifact url=%s", url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            raise ArtifactFetchError(
                f"GET {url} returned {e.response.status_code}",
                details={"url": url, "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise ArtifactFetchError(
                f"GET {url} failed: {e}",
                details={"url": url, "error": str(e)},
            ) from e


def source_from_uri(uri: str | Path, timeout: float = 60.0) -> ArtifactSource:
    """Pick an artifact source for a directory path or http(s) URL."""
    text = str(uri)
    if text.startswith(("http://", "https://")):
        return HttpArtifactSource(text, timeout=timeout)
    return LocalArtifactSource(text)
