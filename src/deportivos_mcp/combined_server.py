"""Command line entry point: MCP over stdio, the SSE/HTTP bridge, or both."""

import argparse
import asyncio
import logging
import os

logger = logging.getLogger(__name__)

MODES = ("stdio", "sse", "both")


async def run_combined_server(
    mode: str = "stdio", sse_host: str = "0.0.0.0", sse_port: int = 8000
) -> None:
    """Run the server in the specified mode.

    Args:
        mode: Server mode ("stdio", "sse", or "both")
        sse_host: Host for SSE server
        sse_port: Port for SSE server
    """
    if mode not in MODES:
        raise ValueError(f"Mode must be one of {', '.join(MODES)}, got: {mode}")

    # Imported late so --base-url reaches the configuration first
    from .server import initialize, mcp

    logger.info(f"Starting Deportivos MCP Server in {mode} mode")
    await initialize()

    if mode == "stdio":
        await mcp.run_async(show_banner=False)
        return

    from .sse_server import run_sse_server_async

    sse_task = await run_sse_server_async(sse_host, sse_port)
    logger.info(f"SSE server listening on {sse_host}:{sse_port}")
    try:
        if mode == "both":
            await mcp.run_async(show_banner=False)
        else:
            await sse_task
    finally:
        if not sse_task.done():
            sse_task.cancel()
            try:
                await sse_task
            except asyncio.CancelledError:
                pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deportivos reservation MCP server")
    parser.add_argument(
        "--mode",
        choices=MODES,
        default="stdio",
        help="Server mode: stdio (MCP), sse (HTTP), or both",
    )
    parser.add_argument(
        "--sse-host", default="0.0.0.0", help="Host for SSE server (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--sse-port", type=int, default=8000, help="Port for SSE server (default: 8000)"
    )
    parser.add_argument(
        "--base-url",
        help="Reservations backend address (overrides DEPORTIVOS_BASE_URL)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )
    # Read from sys.argv by the server module at import time
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Wait for a debugger to attach on port 5678",
    )
    return parser


def main() -> None:
    """Main entry point for combined server."""
    args = build_parser().parse_args()

    if args.base_url:
        os.environ["DEPORTIVOS_BASE_URL"] = args.base_url

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(
            run_combined_server(
                mode=args.mode, sse_host=args.sse_host, sse_port=args.sse_port
            )
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    main()
