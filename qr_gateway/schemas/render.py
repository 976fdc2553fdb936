"""
Render Request Schemas

Parameters that control image output, and the layer list the
compositor flattens.
"""

from dataclasses import dataclass
from typing import Optional

from PIL import Image
from pydantic import BaseModel, Field

from ..errors import InvalidSize, SizeFrameConflict


FALSE_VALUES = frozenset(("false", "0", "no", "off"))


def parse_flag(raw: Optional[str], default: bool) -> bool:
    """
    Boolean-ish query parameter.

    Absent means default; false/0/no/off (any case) mean False;
    any other value, including an empty string, means True.
    """
    if raw is None:
        return default
    return raw.strip().lower() not in FALSE_VALUES


class RenderRequest(BaseModel):
    """What the image endpoint was asked to produce."""
    url: str = Field(
        ...,
        min_length=1,
        description="Percent-encoded destination URL to encode"
    )

    size: Optional[int] = Field(
        default=None,
        gt=0,
        description="Explicit output size in pixels; only valid without frame"
    )

    frame: bool = Field(
        default=True,
        description="Compose the QR onto the branded frame"
    )

    verify: bool = Field(
        default=True,
        description="Verify the target against the directory first"
    )

    @staticmethod
    def parse_size(raw: Optional[str], frame: bool, maximum: int) -> Optional[int]:
        """
        Validate ?size= against ?frame=.

        Frame mode derives its own QR size, so any explicit size
        (even a malformed one) conflicts with it.
        """
        if raw is None:
            return None
        if frame:
            raise SizeFrameConflict()
        try:
            size = int(raw)
        except ValueError:
            raise InvalidSize(raw, maximum)
        if not 0 < size <= maximum:
            raise InvalidSize(raw, maximum)
        return size


@dataclass(frozen=True)
class CompositionLayer:
    """One image placed at (left, top) on a base canvas."""
    image: Image.Image
    left: int
    top: int
