# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Environment is set before catalog_api.config is imported, because the module
# builds its settings object at import time.
# =============================================================================

import io
import os

os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from catalog_api.config import Settings
from catalog_api.main import create_app

TEST_TOKEN = "test-admin-token"


def make_image_bytes(
    fmt: str = "PNG",
    size: tuple[int, int] = (400, 300),
    mode: str = "RGB",
    color=(200, 40, 40),
) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def image_bytes():
    """Factory for in-memory encoded test images."""
    return make_image_bytes


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def app_settings(upload_dir) -> Settings:
    return Settings(upload_dir=str(upload_dir), admin_token=TEST_TOKEN, transcode_workers=2)


@pytest.fixture
def app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    """Client with the lifespan running, so the transcode pool exists."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {TEST_TOKEN}"}
