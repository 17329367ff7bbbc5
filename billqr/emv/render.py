"""
QR Image Rendering

Turns a payment payload into PNG bytes with `qrcode` and its Pillow image
factory. The payload string is encoded as-is; nothing here alters it.
"""

from io import BytesIO
from typing import Optional

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from qrcode.image.pil import PilImage

from billqr.config import get_settings


_ERROR_CORRECTION = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


def render_png(
    payload: str,
    box_size: Optional[int] = None,
    border: Optional[int] = None,
) -> bytes:
    """
    Render a payload as a black-on-white PNG.

    Args:
        payload: String to encode (typically from build_payload)
        box_size: Pixels per module. Defaults to settings.
        border: Quiet zone in modules. Defaults to settings.

    Returns:
        PNG file contents
    """
    render_settings = get_settings().render

    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION[render_settings.error_correction],
        box_size=box_size if box_size is not None else render_settings.box_size,
        border=border if border is not None else render_settings.border,
        image_factory=PilImage,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    image = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
