# Request and response schemas for the QR gateway.
# Everything here is built per request and never persisted.

from .target import (
    FollowTarget,
    TargetKind,
    TargetParams,
    START_VERBS,
    QUERY_PARAMS,
)
from .directory import PersonMatch, OrganisationMatch, TagMatch
from .render import RenderRequest, CompositionLayer, parse_flag

__all__ = [
    # Target
    "FollowTarget",
    "TargetKind",
    "TargetParams",
    "START_VERBS",
    "QUERY_PARAMS",
    # Directory
    "PersonMatch",
    "OrganisationMatch",
    "TagMatch",
    # Render
    "RenderRequest",
    "CompositionLayer",
    "parse_flag",
]
