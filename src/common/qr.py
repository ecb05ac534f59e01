"""QR image rendering."""

import base64
from io import BytesIO

import qrcode

DATA_URL_PREFIX = "data:image/png;base64,"


def render_qr_png(text: str, box_size: int = 10, border: int = 2) -> bytes:
    """Render ``text`` as a PNG QR code."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(text)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffered = BytesIO()
    img.save(buffered, "PNG")
    return buffered.getvalue()


def render_qr_data_url(text: str) -> str:
    """Render ``text`` as a QR code and return it as a base64 PNG data URL."""
    return DATA_URL_PREFIX + base64.b64encode(render_qr_png(text)).decode("utf-8")
