"""
Gateway Configuration

Environment-driven settings, parsed once at startup and passed explicitly
to the resolver, the renderers and the routes. Nothing reads os.environ
after the lifespan has built a GatewayConfig.

Environment Variables:
    QR_GATEWAY_ENV: development or production (default production)
    PORT: Listening port (default 3000)
    APP_DOMAIN: Public domain of the gateway (default links.joel-officiel.fr)
    HOME_WEBSITE_URL: Marketing site used as redirect fallback

    TELEGRAM_BOT_NAME: Telegram bot username
    WHATSAPP_BOT_PHONE_NUMBER: WhatsApp bot phone number
    MATRIX_BOT_USERNAME: Matrix bot user id (without leading @)
    TCHAP_BOT_USERNAME: Tchap bot user id (without leading @)

    UMAMI_HOST / UMAMI_ID: Analytics host and website id (required in production)
    JORFSEARCH_BASE_URL: Directory search base URL
    QR_GATEWAY_HTTP_TIMEOUT: Outbound HTTP timeout in seconds (default 10)

    QR_GATEWAY_ASSETS_DIR: Directory holding frame.png, logo_round.png and the font
    QR_GATEWAY_QR_SIZE: Default QR size in pixels (default 600)
    QR_GATEWAY_MAX_QR_SIZE: Largest size accepted from ?size= (default 2000)
    QR_GATEWAY_LOGO_SCALE: Logo width relative to the QR (default 0.45)
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


DEFAULT_ASSETS_DIR = Path(__file__).parent / "web" / "static"

GREETING = "Bonjour JOEL!"


class ConfigError(ValueError):
    """Raised when the environment does not describe a usable gateway."""
    pass


class Environment(str, Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Messenger(str, Enum):
    """Messaging apps the landing page can link into."""
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    MATRIX = "matrix"
    TCHAP = "tchap"
    SIGNAL = "signal"


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable gateway configuration."""
    environment: Environment = Environment.PRODUCTION
    port: int = 3000
    domain: str = "links.joel-officiel.fr"
    home_website_url: str = "https://joel-officiel.fr"

    # Messenger handles; None means "not offered"
    telegram_bot_name: Optional[str] = None
    whatsapp_phone_number: Optional[str] = None
    matrix_bot_username: Optional[str] = None
    tchap_bot_username: Optional[str] = None

    umami_host: Optional[str] = None
    umami_id: Optional[str] = None

    directory_base_url: str = "https://jorfsearch.steinertriples.ch"
    http_timeout_seconds: float = 10.0

    assets_dir: Path = DEFAULT_ASSETS_DIR
    qr_size: int = 600
    max_qr_size: int = 2000
    logo_scale: float = 0.45

    # Frame layout
    font_size: int = 40
    text_color: str = "#62676c"

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """
        Load configuration from environment variables.

        Raises:
            ConfigError: if a value is malformed or a required value is missing
        """
        try:
            environment = Environment(os.getenv("QR_GATEWAY_ENV", "production").lower())
        except ValueError:
            raise ConfigError(
                f"Unknown QR_GATEWAY_ENV: {os.getenv('QR_GATEWAY_ENV')}. "
                f"Valid values: development, production"
            )

        try:
            config = cls(
                environment=environment,
                port=int(os.getenv("PORT", "3000")),
                domain=os.getenv(
                    "APP_DOMAIN",
                    "localhost" if environment == Environment.DEVELOPMENT else "links.joel-officiel.fr",
                ),
                home_website_url=os.getenv("HOME_WEBSITE_URL", "https://joel-officiel.fr"),
                telegram_bot_name=os.getenv("TELEGRAM_BOT_NAME") or None,
                whatsapp_phone_number=os.getenv("WHATSAPP_BOT_PHONE_NUMBER") or None,
                matrix_bot_username=os.getenv("MATRIX_BOT_USERNAME") or None,
                tchap_bot_username=os.getenv("TCHAP_BOT_USERNAME") or None,
                umami_host=os.getenv("UMAMI_HOST") or None,
                umami_id=os.getenv("UMAMI_ID") or None,
                directory_base_url=os.getenv(
                    "JORFSEARCH_BASE_URL", "https://jorfsearch.steinertriples.ch"
                ),
                http_timeout_seconds=float(os.getenv("QR_GATEWAY_HTTP_TIMEOUT", "10")),
                assets_dir=Path(os.getenv("QR_GATEWAY_ASSETS_DIR", str(DEFAULT_ASSETS_DIR))),
                qr_size=int(os.getenv("QR_GATEWAY_QR_SIZE", "600")),
                max_qr_size=int(os.getenv("QR_GATEWAY_MAX_QR_SIZE", "2000")),
                logo_scale=float(os.getenv("QR_GATEWAY_LOGO_SCALE", "0.45")),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        config.validate()
        return config

    def validate(self) -> None:
        """Check cross-field rules. Called by from_env and by create_app."""
        if not self.messenger_bases:
            raise ConfigError(
                "Missing messenger configuration. Set TELEGRAM_BOT_NAME, "
                "WHATSAPP_BOT_PHONE_NUMBER, MATRIX_BOT_USERNAME or "
                "TCHAP_BOT_USERNAME environment variables."
            )
        if self.is_production and (self.umami_host is None or self.umami_id is None):
            raise ConfigError("UMAMI_HOST and UMAMI_ID must be set in production")
        if not 0 < self.logo_scale <= 1:
            raise ConfigError(f"QR_GATEWAY_LOGO_SCALE must be in (0, 1], got {self.logo_scale}")
        if self.qr_size <= 0 or self.max_qr_size < self.qr_size:
            raise ConfigError(
                f"Invalid QR sizes: qr_size={self.qr_size}, max_qr_size={self.max_qr_size}"
            )

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def base_url(self) -> str:
        """Public URL of the landing page; the port is only exposed in development."""
        if self.is_production:
            return f"https://{self.domain}"
        return f"http://{self.domain}:{self.port}"

    @property
    def qr_endpoint_url(self) -> str:
        return self.base_url + "/qrcode"

    @property
    def messenger_bases(self) -> Dict[Messenger, str]:
        """
        Deep-link base per configured messenger.

        WhatsApp and Telegram bases already carry the greeting text; the
        landing page appends the start command to them.
        """
        bases: Dict[Messenger, str] = {}
        if self.whatsapp_phone_number:
            bases[Messenger.WHATSAPP] = f"https://wa.me/{self.whatsapp_phone_number}?text={GREETING}"
        if self.telegram_bot_name:
            bases[Messenger.TELEGRAM] = f"https://t.me/{self.telegram_bot_name}?text={GREETING}"
        if self.matrix_bot_username:
            bases[Messenger.MATRIX] = f"https://matrix.to/#/@{self.matrix_bot_username}"
        if self.tchap_bot_username:
            bases[Messenger.TCHAP] = f"https://www.tchap.gouv.fr/#/@{self.tchap_bot_username}"
        return bases

    def messenger_base(self, messenger: Messenger) -> Optional[str]:
        return self.messenger_bases.get(messenger)
