"""
URL helpers shared by the image endpoint and the landing page.

Generated URLs re-select the same target the same way: the target value
is escaped as a single query value, and an unverified target carries
verify=false so following the URL does not hit the directory again.
"""

from urllib.parse import quote, urlencode

from ..schemas import FollowTarget

# Characters JavaScript's encodeURI leaves untouched, besides alphanumerics and -_.~
_URI_SAFE = ";,/?:@&=+$!*'()#"


def encode_uri(url: str) -> str:
    """
    Percent-encode a full URL the way encodeURI does.

    Reserved characters keep their meaning; spaces and non-ASCII
    characters are escaped. Already-escaped sequences are escaped again,
    so only pass raw URLs.
    """
    return quote(url, safe=_URI_SAFE)


def target_query(target: FollowTarget, **extra: str) -> str:
    """Query string selecting `target`, with `extra` parameters after it."""
    params = {target.query_param: target.query_value, **extra}
    if not target.verified:
        params["verify"] = "false"
    return urlencode(params, quote_via=quote, safe="")


def landing_url(base_url: str, target: FollowTarget) -> str:
    """Landing page URL that re-selects `target` (the QR code destination)."""
    return f"{encode_uri(base_url)}?{target_query(target)}"


def qr_image_url(qr_endpoint_url: str, target: FollowTarget) -> str:
    """Raw (frameless) QR image URL for `target`, shown on the landing page."""
    return f"{encode_uri(qr_endpoint_url)}?{target_query(target, frame='false')}"
