"""Tests for faceio.loader module."""

import base64
import io

import numpy as np
import pytest
from PIL import Image

from faceio import ImageConfig, RawImage, decode_data_url, decode_image, load_image, load_image_bytes
from faceio.errors import ImageDecodeError

from tests.fixtures import generate_image_bytes


class TestLoadImageBytes:
    """Tests for load_image_bytes function."""

    def test_load_rgb_png(self):
        """Load a valid RGB PNG."""
        image = load_image_bytes(generate_image_bytes(width=80, height=60, mode="RGB"))

        assert isinstance(image, RawImage)
        assert image.pixels.dtype == np.uint8
        assert image.width == 80
        assert image.height == 60
        assert image.channels == 3

    def test_load_grayscale_png_has_channel_axis(self):
        """Grayscale images should come back as [H, W, 1]."""
        image = load_image_bytes(generate_image_bytes(mode="L", color=128))

        assert image.pixels.shape == (64, 64, 1)
        assert image.channels == 1

    def test_load_rgba_png(self):
        """RGBA images keep their alpha channel."""
        image = load_image_bytes(generate_image_bytes(mode="RGBA", color=(1, 2, 3, 4)))

        assert image.channels == 4

    def test_load_jpeg(self):
        """JPEG webcam snapshots decode to RGB."""
        image = load_image_bytes(generate_image_bytes(fmt="JPEG"))

        assert image.channels == 3

    def test_palette_image_converted(self):
        """Palette images are converted to RGB."""
        image = load_image_bytes(generate_image_bytes(mode="P", color=3, fmt="PNG"))

        assert image.channels in (3, 4)

    def test_empty_bytes_raises_error(self):
        """Empty bytes should raise EMPTY_FILE."""
        with pytest.raises(ImageDecodeError) as exc_info:
            load_image_bytes(b"")

        assert exc_info.value.code == "EMPTY_FILE"

    def test_garbage_bytes_raises_error(self):
        """Non-image bytes should raise INVALID_IMAGE."""
        with pytest.raises(ImageDecodeError) as exc_info:
            load_image_bytes(b"definitely not an image" * 10)

        assert exc_info.value.code == "INVALID_IMAGE"

    def test_truncated_png_raises_error(self):
        """A truncated file should raise INVALID_IMAGE."""
        rng = np.random.default_rng(0)
        noise = Image.fromarray(rng.integers(0, 256, size=(200, 200, 3), dtype=np.uint8))
        buffer = io.BytesIO()
        noise.save(buffer, format="PNG")
        data = buffer.getvalue()

        with pytest.raises(ImageDecodeError) as exc_info:
            load_image_bytes(data[: len(data) // 2])

        assert exc_info.value.code == "INVALID_IMAGE"

    def test_too_many_pixels_raises_error(self):
        """Images over the pixel budget should raise TOO_LARGE."""
        data = generate_image_bytes(width=100, height=100)

        with pytest.raises(ImageDecodeError) as exc_info:
            load_image_bytes(data, ImageConfig(max_pixels=5000))

        assert exc_info.value.code == "TOO_LARGE"
        assert exc_info.value.details["width"] == 100


class TestLoadImageFile:
    """Tests for load_image function."""

    def test_load_from_path(self, tmp_path):
        """Load an image from disk."""
        path = tmp_path / "face.png"
        path.write_bytes(generate_image_bytes(width=32, height=40))

        image = load_image(path)

        assert image.pixels.shape == (40, 32, 3)

    def test_missing_file_raises_error(self, tmp_path):
        """Missing file should raise FILE_NOT_FOUND."""
        with pytest.raises(ImageDecodeError) as exc_info:
            load_image(tmp_path / "missing.png")

        assert exc_info.value.code == "FILE_NOT_FOUND"

    def test_empty_file_raises_error(self, tmp_path):
        """Zero-byte file should raise EMPTY_FILE."""
        path = tmp_path / "empty.png"
        path.write_bytes(b"")

        with pytest.raises(ImageDecodeError) as exc_info:
            load_image(path)

        assert exc_info.value.code == "EMPTY_FILE"


class TestDecodeDataUrl:
    """Tests for webcam snapshot data URLs."""

    def test_jpeg_data_url(self):
        """A base64 JPEG data URL decodes like the raw file."""
        payload = base64.b64encode(generate_image_bytes(fmt="JPEG")).decode("ascii")

        image = decode_data_url(f"data:image/jpeg;base64,{payload}")

        assert image.width == 64
        assert image.channels == 3

    def test_not_a_data_url(self):
        """Plain strings are rejected."""
        with pytest.raises(ImageDecodeError) as exc_info:
            decode_data_url("https://example.com/face.png")

        assert exc_info.value.code == "INVALID_DATA_URL"

    def test_invalid_base64(self):
        """Corrupt base64 payloads are rejected."""
        with pytest.raises(ImageDecodeError) as exc_info:
            decode_data_url("data:image/png;base64,@@@not-base64@@@")

        assert exc_info.value.code == "INVALID_DATA_URL"

    def test_empty_payload(self):
        """A data URL with no payload is an empty file."""
        with pytest.raises(ImageDecodeError) as exc_info:
            decode_data_url("data:image/png;base64,")

        assert exc_info.value.code == "EMPTY_FILE"


class TestDecodeImage:
    """Tests for the decode_image dispatcher."""

    def test_dispatch_bytes(self):
        assert decode_image(generate_image_bytes()).channels == 3

    def test_dispatch_path(self, tmp_path):
        path = tmp_path / "face.png"
        path.write_bytes(generate_image_bytes(mode="L", color=10))

        assert decode_image(str(path)).channels == 1

    def test_dispatch_data_url(self):
        payload = base64.b64encode(generate_image_bytes()).decode("ascii")

        assert decode_image(f"data:image/png;base64,{payload}").height == 64
