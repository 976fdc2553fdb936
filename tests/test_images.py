"""
Tests for QR encoding and image composition

The brand frame and logo are generated in conftest; the font is the
one shipped with the package.
"""

import io
import math

import pytest
from PIL import Image

from qr_gateway.core import BrandAssets, ImageCompositor, QrEncoder
from qr_gateway.errors import SizeFrameConflict
from qr_gateway.schemas import CompositionLayer, RenderRequest

from conftest import FRAME_COLOR, FRAME_SIZE

URL = "http://localhost:3000?name=Jean%20Dupont"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def compositor(brand_assets):
    return ImageCompositor(brand_assets)


def open_png(data: bytes) -> Image.Image:
    assert data.startswith(PNG_SIGNATURE)
    return Image.open(io.BytesIO(data))


class TestQrEncoder:
    """URL -> bitmap."""

    def test_exact_size(self):
        for size in (21, 300, 600, 1001):
            image = QrEncoder().encode(URL, size)
            assert image.size == (size, size)
            assert image.mode == "RGBA"

    def test_deterministic(self):
        first = QrEncoder().encode(URL, 300)
        second = QrEncoder().encode(URL, 300)
        assert first.tobytes() == second.tobytes()

    def test_different_urls_differ(self):
        first = QrEncoder().encode(URL, 300)
        second = QrEncoder().encode(URL + "x", 300)
        assert first.tobytes() != second.tobytes()

    def test_only_two_colours(self):
        """Nearest-neighbour scaling never blends modules."""
        image = QrEncoder().encode(URL, 517, dark="#102030", light="#fafafa")
        colours = {colour for _, colour in image.getcolors()}
        assert colours == {(16, 32, 48, 255), (250, 250, 250, 255)}

    def test_margin_is_light(self):
        image = QrEncoder(margin=2).encode(URL, 600)
        assert image.getpixel((0, 0)) == (255, 255, 255, 255)
        assert image.getpixel((599, 599)) == (255, 255, 255, 255)

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            QrEncoder().encode(URL, 0)


class TestLogo:
    """Logo centred on the QR."""

    def test_geometry_default_size(self, compositor):
        # Logo is 200x100, scale 0.45 of a 600 px QR
        assert compositor.logo_geometry(600) == (270, 135, 165, 232)

    @pytest.mark.parametrize("qr_size", [21, 101, 300, 599, 600, 1999])
    @pytest.mark.parametrize("scale", [0.1, 0.45, 1.0])
    def test_geometry_is_centred_and_inside(self, brand_assets, qr_size, scale):
        compositor = ImageCompositor(brand_assets, logo_scale=scale)
        width, height, left, top = compositor.logo_geometry(qr_size)

        assert width == max(1, math.floor(qr_size * scale))
        assert left == math.floor((qr_size - width) / 2)
        assert top == math.floor((qr_size - height) / 2)
        assert left >= 0 and top >= 0

    def test_invalid_scale(self, brand_assets):
        with pytest.raises(ValueError):
            ImageCompositor(brand_assets, logo_scale=0)

    def test_transparent_pixels_keep_qr(self, compositor):
        qr = QrEncoder().encode(URL, 600)
        before = qr.copy()
        result = compositor.overlay_logo(qr)

        # Logo box corner is transparent in the logo
        _, _, left, top = compositor.logo_geometry(600)
        assert result.getpixel((left + 1, top + 1)) == before.getpixel((left + 1, top + 1))
        # Logo centre is the opaque ellipse
        assert result.getpixel((300, 300))[:3] == (220, 30, 30)
        # Input untouched
        assert qr.tobytes() == before.tobytes()


class TestFrame:
    """QR and label composed onto the brand frame."""

    def test_layout(self, compositor):
        (left, top), text_top = compositor.frame_layout(600)
        assert (left, top) == (200, 720)
        assert text_top == 560

    def test_composed_size_and_qr_position(self, compositor):
        qr = QrEncoder().encode(URL, 600)
        framed = compositor.compose_frame(qr, None)

        assert framed.size == FRAME_SIZE
        assert framed.getpixel((200, 720)) == qr.getpixel((0, 0))
        assert framed.getpixel((10, 1590)) == FRAME_COLOR

    def test_text_layer_without_label(self, compositor):
        layer = compositor.text_layer(None)
        assert layer.size == (FRAME_SIZE[0], 120)
        assert layer.getbbox() is None

    def test_text_layer_label_is_centred(self, compositor):
        layer = compositor.text_layer("Jean Dupont")
        assert layer.size == (FRAME_SIZE[0], 120)

        left, top, right, bottom = layer.getbbox()
        assert abs((left + right) / 2 - layer.width / 2) <= 3
        assert abs((top + bottom) / 2 - layer.height / 2) <= 10

    def test_layout_does_not_depend_on_label(self, compositor):
        qr = QrEncoder().encode(URL, 600)
        with_label = compositor.compose_frame(qr, "Acme Org")
        without_label = compositor.compose_frame(qr, None)

        # QR area identical, text strip differs
        box = (200, 720, 800, 1320)
        assert with_label.crop(box).tobytes() == without_label.crop(box).tobytes()
        strip = (0, 560, FRAME_SIZE[0], 680)
        assert with_label.crop(strip).tobytes() != without_label.crop(strip).tobytes()

    def test_frame_asset_not_mutated(self, compositor, brand_assets):
        before = brand_assets.frame.tobytes()
        compositor.compose_frame(QrEncoder().encode(URL, 600), "Jean Dupont")
        assert brand_assets.frame.tobytes() == before


class TestFlatten:
    """Layer ordering and clipping."""

    def test_later_layers_on_top(self):
        base = Image.new("RGBA", (10, 10), (0, 0, 0, 255))
        red = Image.new("RGBA", (5, 5), (255, 0, 0, 255))
        blue = Image.new("RGBA", (5, 5), (0, 0, 255, 255))

        result = ImageCompositor.flatten(base, [
            CompositionLayer(red, 0, 0),
            CompositionLayer(blue, 2, 2),
        ])
        assert result.getpixel((1, 1)) == (255, 0, 0, 255)
        assert result.getpixel((3, 3)) == (0, 0, 255, 255)
        assert result.getpixel((9, 9)) == (0, 0, 0, 255)

    def test_clips_layers_outside_canvas(self):
        base = Image.new("RGBA", (10, 10), (0, 0, 0, 255))
        red = Image.new("RGBA", (6, 6), (255, 0, 0, 255))

        result = ImageCompositor.flatten(base, [
            CompositionLayer(red, -3, -3),
            CompositionLayer(red, 8, 8),
            CompositionLayer(red, 50, 50),
        ])
        assert result.size == (10, 10)
        assert result.getpixel((2, 2)) == (255, 0, 0, 255)
        assert result.getpixel((3, 3)) == (0, 0, 0, 255)
        assert result.getpixel((9, 9)) == (255, 0, 0, 255)

    def test_converts_non_rgba_base(self):
        base = Image.new("RGB", (4, 4), (1, 2, 3))
        result = ImageCompositor.flatten(base, [])
        assert result.mode == "RGBA"
        assert result.getpixel((0, 0)) == (1, 2, 3, 255)


class TestRender:
    """Full pipeline to PNG."""

    def test_raw_with_size(self, compositor):
        png = compositor.render(RenderRequest(url=URL, size=300, frame=False))
        assert open_png(png).size == (300, 300)

    def test_raw_default_size(self, compositor):
        png = compositor.render(RenderRequest(url=URL, frame=False))
        assert open_png(png).size == (600, 600)

    def test_framed(self, compositor):
        png = compositor.render(RenderRequest(url=URL), label="Jean Dupont")
        assert open_png(png).size == FRAME_SIZE

    def test_size_with_frame_rejected(self, compositor):
        with pytest.raises(SizeFrameConflict):
            compositor.render(RenderRequest(url=URL, size=300, frame=True))


class TestBrandAssets:

    def test_load(self, assets_dir):
        assets = BrandAssets.load(assets_dir)
        assert assets.frame.size == FRAME_SIZE
        assert assets.frame.mode == "RGBA"
        assert assets.logo.mode == "RGBA"
        assert assets.font_bytes

    def test_missing_assets(self, tmp_path):
        with pytest.raises(FileNotFoundError) as exc_info:
            BrandAssets.load(tmp_path)
        assert "frame.png" in str(exc_info.value)
        assert "logo_round.png" in str(exc_info.value)
