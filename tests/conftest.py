"""Shared fixtures: a stub directory, generated brand images and a dev config."""

from pathlib import Path
from typing import List, Optional

import pytest
from PIL import Image, ImageDraw

from qr_gateway.config import Environment, GatewayConfig
from qr_gateway.core.compositor import FONT_FILENAME, BrandAssets
from qr_gateway.errors import DirectoryUnavailable
from qr_gateway.schemas import OrganisationMatch, PersonMatch, TagMatch

PACKAGE_FONT = Path(__file__).parent.parent / "qr_gateway" / "web" / "static" / FONT_FILENAME

FRAME_SIZE = (1000, 1600)
FRAME_COLOR = (245, 240, 230, 255)
LOGO_SIZE = (200, 100)


class StubDirectory:
    """In-memory directory that records every lookup."""

    def __init__(self):
        self.people: List[PersonMatch] = []
        self.organisations: List[OrganisationMatch] = []
        self.tags: List[TagMatch] = []
        self.calls: List[tuple] = []
        self.failure: Optional[Exception] = None

    async def search_person(self, raw_name):
        self.calls.append(("person", raw_name))
        if self.failure:
            raise self.failure
        return list(self.people)

    async def search_organisation_by_external_id(self, external_id):
        self.calls.append(("organisation", external_id))
        if self.failure:
            raise self.failure
        return list(self.organisations)

    async def search_tag(self, tag):
        self.calls.append(("function_tag", tag))
        if self.failure:
            raise self.failure
        return list(self.tags)

    def fail(self, message: str = "Directory unreachable") -> None:
        self.failure = DirectoryUnavailable(message)


def make_frame() -> Image.Image:
    frame = Image.new("RGBA", FRAME_SIZE, FRAME_COLOR)
    draw = ImageDraw.Draw(frame)
    draw.rectangle((40, 40, FRAME_SIZE[0] - 40, 200), fill=(30, 60, 160, 255))
    return frame


def make_logo() -> Image.Image:
    """Transparent 200x100 logo with an opaque red ellipse in the middle."""
    logo = Image.new("RGBA", LOGO_SIZE, (0, 0, 0, 0))
    draw = ImageDraw.Draw(logo)
    draw.ellipse((50, 10, 150, 90), fill=(220, 30, 30, 255))
    return logo


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def directory():
    return StubDirectory()


@pytest.fixture
def brand_assets():
    return BrandAssets(
        frame=make_frame(),
        logo=make_logo(),
        font_bytes=PACKAGE_FONT.read_bytes(),
    )


@pytest.fixture
def assets_dir(tmp_path):
    """A directory laid out like the production assets directory."""
    make_frame().save(tmp_path / "frame.png")
    make_logo().save(tmp_path / "logo_round.png")
    (tmp_path / FONT_FILENAME).write_bytes(PACKAGE_FONT.read_bytes())
    return tmp_path


@pytest.fixture
def config(assets_dir):
    return GatewayConfig(
        environment=Environment.DEVELOPMENT,
        domain="localhost",
        port=3000,
        telegram_bot_name="joel_bot",
        whatsapp_phone_number="33600000000",
        matrix_bot_username="joel:matrix.org",
        assets_dir=assets_dir,
    )
