"""
Image Compositor

Builds the final PNG for the image endpoint:

1. QR bitmap (QrEncoder)
2. Logo centred on the QR, alpha kept, no background plate
3. Frame mode only: QR and a text label layered onto the branded frame

Frame layout (W x H = frame size, S = QR size):
    QR    at left = round((W - S) / 2), top = round(H * 0.45)
    text  layer W x (3 * font_size) at left = 0, top = round(H * 0.35)

The text layer is always placed, even without a label, so the layout
does not shift between labelled and unlabelled codes.

Brand assets are loaded once at startup and only ever read afterwards;
each render works on copies.
"""

import io
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from ..errors import SizeFrameConflict
from ..observability import get_logger
from ..schemas import CompositionLayer, RenderRequest
from .qr_encoder import QrEncoder

logger = get_logger(__name__)

FRAME_FILENAME = "frame.png"
LOGO_FILENAME = "logo_round.png"
FONT_FILENAME = "DejaVuSans-Bold.ttf"

QR_TOP_RATIO = 0.45
TEXT_TOP_RATIO = 0.35
TEXT_LAYER_LINES = 3


@dataclass(frozen=True)
class BrandAssets:
    """Read-only images and font shared by every render."""
    frame: Image.Image
    logo: Image.Image
    font_bytes: bytes

    @classmethod
    def load(cls, directory: Path) -> "BrandAssets":
        """
        Load frame, logo and font from `directory`.

        Raises:
            FileNotFoundError: if an asset is missing
        """
        paths = {
            "frame": directory / FRAME_FILENAME,
            "logo": directory / LOGO_FILENAME,
            "font": directory / FONT_FILENAME,
        }
        missing = [str(p) for p in paths.values() if not p.is_file()]
        if missing:
            raise FileNotFoundError(f"Missing brand assets: {', '.join(missing)}")

        with Image.open(paths["frame"]) as frame, Image.open(paths["logo"]) as logo:
            assets = cls(
                frame=frame.convert("RGBA"),
                logo=logo.convert("RGBA"),
                font_bytes=paths["font"].read_bytes(),
            )

        logger.info(
            "Brand assets loaded",
            assets_dir=str(directory),
            frame_size=list(assets.frame.size),
            logo_size=list(assets.logo.size),
        )
        return assets


class ImageCompositor:
    """QR + logo + frame + text compositing."""

    def __init__(
        self,
        assets: BrandAssets,
        encoder: Optional[QrEncoder] = None,
        qr_size: int = 600,
        logo_scale: float = 0.45,
        font_size: int = 40,
        text_color: str = "#62676c",
    ):
        if not 0 < logo_scale <= 1:
            raise ValueError(f"logo_scale must be in (0, 1], got {logo_scale}")
        self._assets = assets
        self._encoder = encoder or QrEncoder()
        self._qr_size = qr_size
        self._logo_scale = logo_scale
        self._font_size = font_size
        self._text_color = text_color

    @property
    def qr_size(self) -> int:
        """QR size used when no explicit size is requested, and always in frame mode."""
        return self._qr_size

    @property
    def frame_size(self) -> Tuple[int, int]:
        return self._assets.frame.size

    # ============================================================
    # PIPELINE
    # ============================================================

    def render(self, request: RenderRequest, label: Optional[str] = None) -> bytes:
        """
        Produce the PNG for a render request.

        Raises:
            SizeFrameConflict: if an explicit size is combined with frame mode
        """
        if request.frame and request.size is not None:
            raise SizeFrameConflict()

        qr = self._encoder.encode(request.url, request.size or self._qr_size)
        qr = self.overlay_logo(qr)

        image = self.compose_frame(qr, label) if request.frame else qr
        return self.to_png(image)

    # ============================================================
    # LOGO
    # ============================================================

    def logo_geometry(self, qr_size: int) -> Tuple[int, int, int, int]:
        """
        Logo placement for a QR of `qr_size` pixels.

        Returns:
            (width, height, left, top)
        """
        logo_w, logo_h = self._assets.logo.size
        width = max(1, math.floor(qr_size * self._logo_scale))
        height = max(1, round(logo_h * width / logo_w))
        left = math.floor((qr_size - width) / 2)
        top = math.floor((qr_size - height) / 2)
        return width, height, left, top

    def overlay_logo(self, qr: Image.Image) -> Image.Image:
        """Centre the logo on a square QR bitmap; returns a new image."""
        width, height, left, top = self.logo_geometry(qr.width)
        logo = self._assets.logo.resize((width, height), Image.Resampling.LANCZOS)
        return self.flatten(qr, [CompositionLayer(logo, left, top)])

    # ============================================================
    # FRAME
    # ============================================================

    def frame_layout(self, qr_size: int) -> Tuple[Tuple[int, int], int]:
        """
        Offsets inside the frame.

        Returns:
            ((qr_left, qr_top), text_top)
        """
        frame_w, frame_h = self._assets.frame.size
        qr_left = round((frame_w - qr_size) / 2)
        qr_top = round(frame_h * QR_TOP_RATIO)
        text_top = round(frame_h * TEXT_TOP_RATIO)
        return (qr_left, qr_top), text_top

    def text_layer(self, label: Optional[str]) -> Image.Image:
        """
        Transparent W x (3 * font_size) strip with the label centred in it.

        An empty label yields the same strip without text.
        """
        frame_w = self._assets.frame.width
        layer = Image.new("RGBA", (frame_w, self._font_size * TEXT_LAYER_LINES), (0, 0, 0, 0))

        if label:
            font = ImageFont.truetype(io.BytesIO(self._assets.font_bytes), self._font_size)
            draw = ImageDraw.Draw(layer)
            draw.text(
                (layer.width / 2, layer.height / 2),
                label,
                font=font,
                fill=self._text_color,
                anchor="mm",
            )

        return layer

    def compose_frame(self, qr: Image.Image, label: Optional[str]) -> Image.Image:
        """Frame, then QR, then text layer, flattened into one image."""
        (qr_left, qr_top), text_top = self.frame_layout(qr.width)
        return self.flatten(
            self._assets.frame,
            [
                CompositionLayer(qr, qr_left, qr_top),
                CompositionLayer(self.text_layer(label), 0, text_top),
            ],
        )

    # ============================================================
    # PRIMITIVES
    # ============================================================

    @staticmethod
    def flatten(base: Image.Image, layers: Iterable[CompositionLayer]) -> Image.Image:
        """
        Alpha-composite `layers` over a copy of `base`, in order.

        Layers partly outside the canvas are clipped; layers fully
        outside are skipped.
        """
        canvas = base.convert("RGBA") if base.mode != "RGBA" else base.copy()

        for layer in layers:
            image = layer.image if layer.image.mode == "RGBA" else layer.image.convert("RGBA")

            # Visible part of the layer, in layer coordinates
            src_left = max(0, -layer.left)
            src_top = max(0, -layer.top)
            src_right = min(image.width, canvas.width - layer.left)
            src_bottom = min(image.height, canvas.height - layer.top)
            if src_right <= src_left or src_bottom <= src_top:
                continue

            canvas.alpha_composite(
                image,
                dest=(layer.left + src_left, layer.top + src_top),
                source=(src_left, src_top, src_right, src_bottom),
            )

        return canvas

    @staticmethod
    def to_png(image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
