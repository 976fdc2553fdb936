"""
QR Encoder

URL -> QR bitmap, always at error-correction level H so the centred
logo can hide part of the modules without breaking the scan.

qrcode draws the matrix at one pixel per module and the result is scaled
to the requested size with nearest-neighbour resampling: module edges
stay sharp and the same input always yields the same pixels.

The encoder does not escape anything; callers pass an already
percent-encoded URL (see core.urls.encode_uri).
"""

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from PIL import Image

DEFAULT_DARK = "#000000"
DEFAULT_LIGHT = "#ffffff"


class QrEncoder:
    """Stateless QR bitmap factory."""

    def __init__(self, margin: int = 1):
        if margin < 0:
            raise ValueError(f"margin must be >= 0, got {margin}")
        self._margin = margin

    def encode(
        self,
        url: str,
        size: int,
        dark: str = DEFAULT_DARK,
        light: str = DEFAULT_LIGHT,
    ) -> Image.Image:
        """
        Encode `url` as a `size` x `size` RGBA image.

        Args:
            url: Percent-encoded URL
            size: Output width and height in pixels
            dark: Module colour
            light: Background colour

        Returns:
            A new RGBA image
        """
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")

        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECT_H,
            box_size=1,
            border=self._margin,
        )
        qr.add_data(url)
        qr.make(fit=True)

        bitmap = qr.make_image(fill_color=dark, back_color=light).convert("RGBA")
        return bitmap.resize((size, size), Image.Resampling.NEAREST)
