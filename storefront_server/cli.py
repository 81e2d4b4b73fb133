"""CLI entry point for the storefront chat server."""

import argparse
import asyncio
import logging


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Storefront Chat Server - product catalog and LLM shopping assistant"
    )
    parser.add_argument(
        "--mode",
        choices=["stdio", "http"],
        default="http",
        help="Server mode: http (storefront + REST API) or stdio (for MCP clients)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (HTTP mode only, default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (HTTP mode only, default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable hot reloading (HTTP mode only, watches for file changes)",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Drop the cached catalog before starting",
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    if args.clear_cache:
        from .cache import CacheStore
        from .config import Settings

        settings = Settings.from_env()
        CacheStore(settings.cache_file).clear()
        logging.getLogger(__name__).info(f"Cleared cache file {settings.cache_file}")

    if args.mode == "http":
        from .http_server import run_http_server
        run_http_server(host=args.host, port=args.port, reload=args.reload)
    else:
        from .server import main as server_main
        asyncio.run(server_main())


if __name__ == "__main__":
    main()
