"""Shared MCP application instance.

Tool modules register on this object; server.py imports them for the side
effect. Keeping it here lets tools import `mcp` without importing server.py.
"""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(
    "Transit Screen",
    instructions="Upcoming departures and service alerts near a transit display location",
)
