"""
Shared pytest fixtures for the pixelforge tests
"""
import base64
import io

import pytest
from PIL import Image

from pixelforge.config import Settings
from pixelforge.web_server import create_app
from tests.helpers import FakeGenerator, SleepRecorder


@pytest.fixture
def settings():
    return Settings(stability_api_key="sk-test", _env_file=None)


@pytest.fixture
def settings_without_key():
    return Settings(stability_api_key=None, _env_file=None)


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(120, 30, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_b64(png_bytes):
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def make_client(settings, sleep):
    """Build a Flask test client around a FakeGenerator"""

    def _make(outcomes=(), app_settings=None):
        generator = FakeGenerator(outcomes)
        factory_calls = []

        def factory(s):
            factory_calls.append(s)
            return generator

        app = create_app(app_settings or settings, generator_factory=factory, sleep=sleep)
        client = app.test_client()
        client.generator = generator
        client.factory_calls = factory_calls
        return client

    return _make
