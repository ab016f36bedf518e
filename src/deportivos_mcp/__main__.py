"""Main entry point for Deportivos MCP server."""

from .server import main

if __name__ == "__main__":
    main()
