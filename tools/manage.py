#!/usr/bin/env python3
"""
JOEL QR Gateway Management CLI

Commands for operating the gateway:
- check-config: Validate the environment and the brand assets
- render: Write the QR code for one target to a PNG file

Usage:
    python -m tools.manage <command> [options]

Examples:
    python -m tools.manage check-config
    python -m tools.manage render --name "Jean Dupont" -o jean.png
    python -m tools.manage render --organisation-id Q12345 --verify --no-frame --size 400
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


def cmd_check_config(args):
    """Validate configuration and brand assets."""
    from qr_gateway.config import ConfigError, GatewayConfig
    from qr_gateway.core import Analytics, BrandAssets

    print("=== JOEL QR Gateway Config Check ===\n")

    try:
        config = GatewayConfig.from_env()
    except ConfigError as e:
        print(f"Configuration: [FAIL] {e}")
        return 1

    print("Configuration: [OK]")
    print(f"  Environment: {config.environment.value}")
    print(f"  Base URL: {config.base_url}")
    print(f"  Directory: {config.directory_base_url}")
    print(f"  Messengers: {', '.join(m.value for m in config.messenger_bases)}")
    analytics = Analytics(config)
    print(f"  Analytics: {'[OK] ' + analytics.endpoint if analytics.enabled else '[WARN] disabled'}")

    print("\nBrand assets:")
    try:
        assets = BrandAssets.load(config.assets_dir)
    except FileNotFoundError as e:
        print(f"  Status: [FAIL] {e}")
        return 1
    print(f"  Directory: {config.assets_dir}")
    print(f"  Frame: {assets.frame.width}x{assets.frame.height}")
    print(f"  Logo: {assets.logo.width}x{assets.logo.height}")

    print("\n=== Config Check Complete ===")
    return 0


async def _resolve(config, params, verify):
    import httpx
    from qr_gateway.core import DirectoryClient, TargetResolver

    async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
        resolver = TargetResolver(DirectoryClient(client, config.directory_base_url))
        return await resolver.resolve(params, verify=verify)


def cmd_render(args):
    """Render one target to a PNG file."""
    from qr_gateway.config import ConfigError, GatewayConfig
    from qr_gateway.core import BrandAssets, ImageCompositor, landing_url
    from qr_gateway.errors import GatewayError
    from qr_gateway.schemas import RenderRequest, TargetParams

    try:
        config = GatewayConfig.from_env()
        frame = not args.no_frame
        size = RenderRequest.parse_size(args.size, frame, config.max_qr_size)
        target = asyncio.run(_resolve(
            config,
            TargetParams(
                name=args.name,
                organisation_id=args.organisation_id,
                function_tag=args.function_tag,
            ),
            args.verify,
        ))
    except (ConfigError, GatewayError) as e:
        print(f"[FAIL] {e}")
        return 1

    try:
        assets = BrandAssets.load(config.assets_dir)
    except FileNotFoundError as e:
        print(f"[FAIL] {e}")
        return 1

    compositor = ImageCompositor(
        assets,
        qr_size=config.qr_size,
        logo_scale=config.logo_scale,
        font_size=config.font_size,
        text_color=config.text_color,
    )
    request = RenderRequest(
        url=landing_url(config.base_url, target),
        size=size,
        frame=frame,
        verify=args.verify,
    )
    png = compositor.render(request, target.canonical_label)

    output = Path(args.output or "qrcode.png")
    output.write_bytes(png)

    print(f"Target: {target.canonical_label} ({target.kind.value}, verified={target.verified})")
    print(f"Encodes: {request.url}")
    print(f"[OK] Wrote {len(png)} bytes to {output}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="JOEL QR Gateway Management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # check-config
    subparsers.add_parser(
        "check-config",
        help="Validate environment configuration and brand assets"
    )

    # render
    p_render = subparsers.add_parser(
        "render",
        help="Write the QR code for one target to a PNG file"
    )
    p_render.add_argument("--name", help="Person to follow (first and last name)")
    p_render.add_argument("--organisation-id", help="Wikidata id of the organisation")
    p_render.add_argument("--function-tag", help="Function tag to follow")
    p_render.add_argument("--verify", action="store_true", help="Check the target on JORFSearch")
    p_render.add_argument("--no-frame", action="store_true", help="Bare QR code without the frame")
    p_render.add_argument("--size", help="QR size in pixels (only with --no-frame)")
    p_render.add_argument("--output", "-o", help="Output file (default: qrcode.png)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "check-config": cmd_check_config,
        "render": cmd_render,
    }

    return commands[args.command](args) or 0


if __name__ == "__main__":
    sys.exit(main())
