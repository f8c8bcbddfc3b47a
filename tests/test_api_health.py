"""Tests for the /health and /labels API endpoints."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.api.config import Settings


@pytest.fixture
def test_settings(model_dir: Path) -> Settings:
    """Create test settings pointing at the three-label test model."""
    return Settings(
        app_name="FER Test Service",
        log_level="DEBUG",
        model_source=str(model_dir),
        device="cpu",
    )


@pytest.fixture
def client(test_settings: Settings):
    """Create a test client; entering it runs startup, which loads the model."""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def broken_client(tmp_path: Path):
    """Test client whose model directory is empty."""
    settings = Settings(log_level="DEBUG", model_source=str(tmp_path / "missing"))
    with TestClient(create_app(settings)) as test_client:
        yield test_client


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    def test_health_returns_ok(self, client: TestClient) -> None:
        """Test that /health reports ok once startup has loaded the model."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["state"] == "ready"
        assert data["error"] is None

    def test_health_includes_model_info(self, client: TestClient, labels: list[str]) -> None:
        """Test that /health includes the model name and labels."""
        data = client.get("/health").json()

        assert data["model_name"] == "test-cnn"
        assert data["labels"] == labels

    def test_health_includes_device(self, client: TestClient, test_settings: Settings) -> None:
        """Test that /health includes device."""
        data = client.get("/health").json()

        assert data["device"] == test_settings.device

    def test_health_has_request_id_header(self, client: TestClient) -> None:
        """Test that response includes X-Request-ID header."""
        response = client.get("/health")

        assert "X-Request-ID" in response.headers
        assert len(response.headers["X-Request-ID"]) > 0

    def test_health_echoes_request_id(self, client: TestClient) -> None:
        """Test that a client-supplied request ID is echoed back."""
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    def test_health_has_response_time_header(self, client: TestClient) -> None:
        """Test that response includes X-Response-Time header."""
        response = client.get("/health")

        assert response.headers["X-Response-Time"].endswith("ms")

    def test_health_reports_failed_load(self, broken_client: TestClient) -> None:
        """Test that a failed startup load is reported, not raised."""
        response = broken_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "unavailable"
        assert data["state"] == "failed"
        assert data["error"] == "MANIFEST_FETCH_FAILED"
        assert data["labels"] is None

    def test_health_loading_without_preload(self, model_dir: Path) -> None:
        """Without preloading the model is not loaded until first use."""
        settings = Settings(model_source=str(model_dir), preload_model=False)

        with TestClient(create_app(settings)) as client:
            data = client.get("/health").json()

        assert data["status"] == "loading"
        assert data["state"] == "uninitialized"


class TestLabelsEndpoint:
    """Tests for GET /labels endpoint."""

    def test_labels_in_model_order(self, client: TestClient, labels: list[str]) -> None:
        response = client.get("/labels")

        assert response.status_code == 200
        assert response.json() == {"labels": labels}

    def test_labels_unavailable_without_model(self, broken_client: TestClient) -> None:
        response = broken_client.get("/labels")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "MODEL_UNAVAILABLE"


class TestOpenAPI:
    """Tests for the generated API schema."""

    def test_openapi_lists_endpoints(self, client: TestClient) -> None:
        paths = client.get("/openapi.json").json()["paths"]

        assert {"/health", "/labels", "/predict", "/capture"} <= set(paths)
