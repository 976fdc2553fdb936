"""
Landing Page Renderer

Fills templates/choose.html for a resolved FollowTarget.

Template bindings are a typed pydantic model (LandingPageContext) and the
Jinja2 environment uses StrictUndefined: a slot the template expects but
the context does not provide fails the render instead of leaking into
the page.
"""

import re
from pathlib import Path
from typing import List, Optional

from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from pydantic import BaseModel, Field

from ..config import GatewayConfig, Messenger
from ..core.urls import encode_uri, qr_image_url
from ..schemas import FollowTarget

TEMPLATES_DIR = Path(__file__).parent / "templates"
LANDING_TEMPLATE = "choose.html"

PAGE_TITLE_WITH_NAME = "Suivre {name} sur JOEL - Journal Electronique"

MOBILE_USER_AGENT = re.compile(
    r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini",
    re.IGNORECASE,
)


class MessengerLink(BaseModel):
    """One messenger button on the landing page."""
    slug: str
    label: str
    href: str
    icon_url: str
    element_id: str


class LandingPageContext(BaseModel):
    """
    Everything choose.html binds.

    Every field is required except hide_qr; a page without a target is
    never rendered (the route redirects instead).
    """
    page_title: str = Field(..., min_length=1)
    base_url: str = Field(..., min_length=1)
    qr_url: str = Field(..., min_length=1)
    start_command: str = Field(..., min_length=1)
    messengers: List[MessengerLink] = Field(..., min_length=1)
    follow_label: str = Field(..., min_length=1)

    hide_qr: bool = False


# Static part of each messenger block
_MESSENGER_BLOCKS = {
    Messenger.WHATSAPP: {
        "label": "WhatsApp",
        "element_id": "wa-link",
        "icon_url": "https://upload.wikimedia.org/wikipedia/commons/6/6b/WhatsApp.svg",
    },
    Messenger.TELEGRAM: {
        "label": "Telegram",
        "element_id": "tg-link",
        "icon_url": "https://upload.wikimedia.org/wikipedia/commons/8/82/Telegram_logo.svg",
    },
    Messenger.MATRIX: {
        "label": "Matrix",
        "element_id": "mx-link",
        "icon_url": "https://upload.wikimedia.org/wikipedia/commons/1/13/Element_%28software%29_logo_%282024%29.svg",
    },
    Messenger.TCHAP: {
        "label": "Tchap",
        "element_id": "tchap-link",
        "icon_url": "https://www.tchap.gouv.fr/themes/tchap/img/logos/tchap-logo.svg",
    },
}

# Messengers whose deep link can carry the start command
_COMMAND_MESSENGERS = (Messenger.WHATSAPP, Messenger.TELEGRAM)


def create_templates(directory: Path = TEMPLATES_DIR) -> Jinja2Templates:
    """Jinja2Templates backed by a strict, autoescaping environment."""
    env = Environment(
        loader=FileSystemLoader(str(directory)),
        autoescape=select_autoescape(["html"]),
        undefined=StrictUndefined,
    )
    return Jinja2Templates(env=env)


def is_mobile(user_agent: Optional[str]) -> bool:
    return bool(user_agent) and MOBILE_USER_AGENT.search(user_agent) is not None


class PageRenderer:
    """Renders the messenger-choice landing page."""

    def __init__(self, config: GatewayConfig, templates: Optional[Jinja2Templates] = None):
        self._config = config
        self._templates = templates or create_templates()

    def messenger_links(self, target: FollowTarget) -> List[MessengerLink]:
        """One link per configured messenger, in display order."""
        links = []
        for messenger, block in _MESSENGER_BLOCKS.items():
            base = self._config.messenger_base(messenger)
            if base is None:
                continue
            if messenger in _COMMAND_MESSENGERS:
                href = encode_uri(f"{base} {target.deep_link_command}")
            else:
                href = base
            links.append(MessengerLink(slug=messenger.value, href=href, **block))
        return links

    def build_context(self, target: FollowTarget, user_agent: Optional[str] = None) -> LandingPageContext:
        return LandingPageContext(
            page_title=PAGE_TITLE_WITH_NAME.format(name=target.canonical_label),
            base_url=self._config.base_url,
            qr_url=qr_image_url(self._config.qr_endpoint_url, target),
            start_command=target.start_command,
            messengers=self.messenger_links(target),
            follow_label=target.canonical_label,
            hide_qr=is_mobile(user_agent),
        )

    def render_context(self, context: LandingPageContext) -> str:
        template = self._templates.get_template(LANDING_TEMPLATE)
        return template.render(**context.model_dump())

    def render(self, target: FollowTarget, user_agent: Optional[str] = None) -> str:
        """HTML landing page for `target`."""
        return self.render_context(self.build_context(target, user_agent))
