import base64
from io import BytesIO

import pytest
from PIL import Image

from app import create_app
from settings import Settings

ALLOWED_ORIGIN = "https://allowed.example"


@pytest.fixture
def settings():
    return Settings(allowed_origin=ALLOWED_ORIGIN, max_upload_bytes=1024 * 1024)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app.test_client()


def make_png(size=(64, 64), color=(255, 0, 0, 255)) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def decode_data_url(data_url: str) -> Image.Image:
    prefix = "data:image/png;base64,"
    assert data_url.startswith(prefix)
    image = Image.open(BytesIO(base64.b64decode(data_url[len(prefix):])))
    assert image.format == "PNG"
    return image


@pytest.fixture
def red_icon() -> bytes:
    return make_png()
