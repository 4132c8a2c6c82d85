"""Main module for the webp-edge CLI."""

import sys
import argparse
from pathlib import Path

from . import __version__
from .config import EdgeSettings
from .core.exceptions import WebpEdgeError
from .core.factories import DerivativeServiceFactory
from .core.logging_config import get_logger, quiet_third_party_loggers
from .core.services import build_image_request
from .core.storage import InMemoryCacheStore, LocalOriginStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webp-edge",
        description="webp-edge - on-demand WebP transcoding and resizing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve derivatives of originals stored in S3
  WEBP_EDGE_ORIGIN_BUCKET=my-originals webp-edge serve --port 8080

  # Render one derivative from a local directory of originals
  webp-edge render u1 p1.jpg --origin-dir ./originals --quality 2 --th 100 \\
                   --output p1.webp

  # Show version
  webp-edge version
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    render_parser = subparsers.add_parser(
        "render", help="Render one derivative from a local origin directory"
    )
    render_parser.add_argument("owner_id", help="Owner id (first path segment)")
    render_parser.add_argument("picture_id", help="Picture id with extension")
    render_parser.add_argument(
        "--origin-dir", required=True, type=Path, help="Directory laid out as owner/picture"
    )
    render_parser.add_argument(
        "--quality", default=None, help="Quality selector: 0 (original), 1 (medium), 2 (thumbnail)"
    )
    render_parser.add_argument("--th", default=None, help="Target width in pixels")
    render_parser.add_argument("--output", required=True, type=Path, help="Output .webp file")
    render_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers.add_parser("version", help="Show version information")

    return parser


def serve(args: argparse.Namespace) -> None:
    import uvicorn

    from .api import create_app

    settings = EdgeSettings.from_env(**({"debug": True} if args.debug else {}))

    service = DerivativeServiceFactory.create_service(settings=settings)
    uvicorn.run(
        create_app(service),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level="debug" if settings.debug else "info",
    )


def render(args: argparse.Namespace) -> None:
    service = DerivativeServiceFactory.create_service(
        settings=EdgeSettings.from_env(debug=args.debug),
        origin_store=LocalOriginStore(args.origin_dir),
        cache_store=InMemoryCacheStore(),
    )
    request = build_image_request(args.owner_id, args.picture_id, args.quality, args.th)
    result = service.render(request)
    args.output.write_bytes(result.data)
    print(f"Wrote {len(result.data)} bytes to {args.output} (key {result.cache_key})")


def main() -> None:
    """Entry point for the webp-edge command-line interface."""
    parser = build_parser()
    args = parser.parse_args()
    logger = get_logger("webp-edge.cli")
    quiet_third_party_loggers()

    if args.command == "serve":
        try:
            serve(args)
        except WebpEdgeError as e:
            logger.error(f"Could not start service: {e}")
            sys.exit(1)

    elif args.command == "render":
        try:
            render(args)
        except WebpEdgeError as e:
            logger.error(f"Render failed: {e}")
            sys.exit(1)

    elif args.command == "version":
        print("webp-edge")
        print(f"Version {__version__}")
        print("On-demand WebP transcoding and resizing")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
