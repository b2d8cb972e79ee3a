"""
Main entry point for the MUSHCODE MCP Server.

This module provides the main() function and server initialization.
"""

import asyncio

from mcp.server.stdio import stdio_server

from .config import settings
from .logging import configure_logging, get_logger
from .persistence import KnowledgePersistence
from .tools import create_server


def main():
    """Main entry point."""
    configure_logging(settings.log_level)
    logger = get_logger(__name__)

    async def run():
        store = await KnowledgePersistence(settings.data_path).load()
        server = create_server(store)
        logger.info("server_starting", name=settings.server_name, data_path=str(settings.data_path))
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

    asyncio.run(run())


if __name__ == "__main__":
    main()
