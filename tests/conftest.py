"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src (for 'skyfolio.*') and tests (for 'fake_backend') to path
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from fake_backend import FakeBackend  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep SKYFOLIO_* variables of the developer's shell out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("SKYFOLIO_"):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Restore default verbosity and drop log sinks after each test."""
    from skyfolio.core.log_bus import get_log_bus
    from skyfolio.core.logging import VerbosityLevel, set_colors, set_log_sink, set_verbosity

    yield
    set_log_sink(None)
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)
    set_colors(True)


@pytest.fixture
def backend():
    """Fresh in-memory backend.

    Returns:
        FakeBackend instance
    """
    return FakeBackend()


@pytest.fixture
def api(backend):
    """ApiClient wired to the fake backend with a valid token."""
    return backend.api()


@pytest.fixture
def auth(api):
    from skyfolio.core.auth import AuthContext

    return AuthContext(api)


@pytest.fixture
def bus():
    from skyfolio.core.events import EventBus

    return EventBus()


@pytest.fixture
def main_image():
    from skyfolio.submission import FileBlob

    return FileBlob("m31.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")


@pytest.fixture
def image_details():
    """Image details that satisfy every required field."""
    return {
        "selectedObjectType": "Galaxy",
        "selectedObjectName": "Andromeda Galaxy",
        "title": "M31 from the backyard",
        "description": "Two hours of integration",
        "iso": "800",
        "exposure_time": "120",
        "focal_length": "400",
        "aperture": "f/5",
        "confirm_ownership": True,
    }


@pytest.fixture
def config_resolver(tmp_path):
    """ConfigResolver that ignores user and system config files.

    Returns:
        ConfigResolver instance
    """
    from skyfolio.core.config import ConfigResolver

    return ConfigResolver(
        cli_args={},
        user_config_path=tmp_path / "missing-user.yaml",
        system_config_path=tmp_path / "missing-system.yaml",
    )
