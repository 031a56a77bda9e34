"""CareCrafter server entry point. Run with ``python -m carecrafter.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from carecrafter.core.config.settings import get_settings
from carecrafter.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the CareCrafter MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.carecrafter_log_level.upper(), logging.INFO)
    )

    logger = logging.getLogger(__name__)
    if not settings.carecrafter_allow_insecure_bind and not _is_loopback_host(
        settings.carecrafter_host
    ):
        raise RuntimeError(
            "Refusing to bind CareCrafter server to a non-loopback host without an auth layer. "
            "Set CARECRAFTER_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting CareCrafter Health server on %s:%d",
        settings.carecrafter_host,
        settings.carecrafter_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.carecrafter_host,
        port=settings.carecrafter_port,
    )


if __name__ == "__main__":
    run()
