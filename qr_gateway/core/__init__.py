# Core gateway services
from .analytics import Analytics, AnalyticsEvent
from .directory import DirectoryClient
from .resolver import Directory, TargetResolver
from .qr_encoder import QrEncoder
from .compositor import BrandAssets, ImageCompositor
from .urls import encode_uri, landing_url, qr_image_url

__all__ = [
    "Analytics",
    "AnalyticsEvent",
    "DirectoryClient",
    "Directory",
    "TargetResolver",
    "QrEncoder",
    "BrandAssets",
    "ImageCompositor",
    "encode_uri",
    "landing_url",
    "qr_image_url",
]
