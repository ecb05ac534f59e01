import base64
from io import BytesIO

from PIL import Image

from common.qr import DATA_URL_PREFIX, render_qr_data_url, render_qr_png


def test_render_qr_png_is_a_png_image() -> None:
    png = render_qr_png("hello")
    image = Image.open(BytesIO(png))
    assert image.format == "PNG"
    assert image.size[0] == image.size[1]


def test_render_qr_data_url() -> None:
    data_url = render_qr_data_url('{"eventId":"e-1"}')
    assert data_url.startswith(DATA_URL_PREFIX)
    assert base64.b64decode(data_url.removeprefix(DATA_URL_PREFIX)).startswith(b"\x89PNG")
