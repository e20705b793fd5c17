"""Miro and Gong MCP server built on FastMCP v2."""

import logging
import sys
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from .cache import PaginationCache
from .clients.gong import GongClient
from .clients.miro import MiroClient
from .config import Config
from .taxonomy import load_taxonomy
from .timezone import resolve_timezone

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Logging: stdout carries the MCP stdio protocol, so logs go to stderr
# ---------------------------------------------------------------------------


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Lifespan: settings, upstream clients, taxonomy and timezone
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP):
    config = Config()
    configure_logging(config.log_level)

    miro: MiroClient | None = None
    if config.miro_configured:
        miro = MiroClient(
            config.miro_access_token,
            base_url=config.miro_api_base,
            timeout=config.http_timeout,
            max_pages=config.miro_max_pages,
        )
        logger.info("Miro API integration enabled")
    else:
        logger.warning("MIRO_ACCESS_TOKEN not set; board tools are unavailable")

    gong: GongClient | None = None
    if config.gong_configured:
        gong = GongClient(
            config.gong_key,
            config.gong_secret,
            base_url=config.gong_api_base,
            timeout=config.http_timeout,
            cache=PaginationCache(config.cache_max_entries, config.cache_ttl_seconds),
            max_retries=config.gong_max_retries,
            retry_base_delay=config.gong_retry_base_delay,
            retry_max_delay=config.gong_retry_max_delay,
            max_pages=config.gong_max_pages,
            page_delay=config.gong_page_delay,
            page_limit=config.gong_page_limit,
        )
        logger.info("Gong API integration enabled")
    else:
        logger.warning("GONG_KEY / GONG_SECRET not set; call tools are unavailable")

    yield {
        "config": config,
        "miro": miro,
        "gong": gong,
        "taxonomy": load_taxonomy(config.taxonomy_path, config.categories),
        "tz": resolve_timezone(config.timezone),
    }


# ---------------------------------------------------------------------------
# Server instance
# ---------------------------------------------------------------------------

mcp = FastMCP("miro-gong", lifespan=lifespan)

# Importing tool modules triggers @mcp.tool() registration
from miro_gong_mcp.tools import board_ops, board_write_ops, call_ops  # noqa: E402, F401

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    mcp.run()
