"""Shared FastMCP instance that every tool module registers against."""
import os

from fastmcp import FastMCP

mcp = FastMCP(os.environ.get("MCP_SERVER_NAME", "Google Ads Analytics Tools"))
