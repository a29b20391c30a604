"""
Search Navigator MCP Server

Thin tool registration over search_nav_mcp.tools; every tool delegates to
execute_tool so the registry stays the single dispatch point.
"""

import logging
import sys
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .config import get_navigator_config
from .tools import execute_tool

mcp = FastMCP("SearchNavigator")


@mcp.tool()
async def search(
    pattern: str,
    directory: str = ".",
    mode: Optional[str] = None,
    literal: bool = False,
    case_sensitive: bool = True,
    limit: int = 100,
) -> Dict[str, Any]:
    """Search a directory with ag and index the matches for navigation"""
    return await execute_tool(
        "search",
        pattern=pattern,
        directory=directory,
        mode=mode,
        literal=literal,
        case_sensitive=case_sensitive,
        limit=limit,
    )


@mcp.tool()
async def list_files(pattern: str, directory: str = ".", mode: Optional[str] = None) -> Dict[str, Any]:
    """List files that contain the pattern"""
    return await execute_tool("list_files", pattern=pattern, directory=directory, mode=mode)


# ----- navigation -----


@mcp.tool()
async def next_match(count: int = 1) -> Dict[str, Any]:
    """Move the cursor forward by count matches"""
    return await execute_tool("next_match", count=count)


@mcp.tool()
async def previous_match(count: int = 1) -> Dict[str, Any]:
    """Move the cursor back by count matches"""
    return await execute_tool("previous_match", count=count)


@mcp.tool()
async def next_file(count: int = 1) -> Dict[str, Any]:
    """Move the cursor forward by count files"""
    return await execute_tool("next_file", count=count)


@mcp.tool()
async def previous_file(count: int = 1) -> Dict[str, Any]:
    """Move the cursor back by count files"""
    return await execute_tool("previous_file", count=count)


@mcp.tool()
async def jump_to(position: Optional[int] = None) -> Dict[str, Any]:
    """Resolve a match to path, line and column"""
    return await execute_tool("jump_to", position=position)


@mcp.tool()
async def abort_search() -> Dict[str, Any]:
    """Kill the running search, keeping the matches found so far"""
    return await execute_tool("abort_search")


@mcp.tool()
async def search_status() -> Dict[str, Any]:
    """Report the state of the current search session"""
    return await execute_tool("search_status")


def main() -> None:
    config = get_navigator_config()
    logging.basicConfig(level=config.get_log_level(), stream=sys.stderr)
    mcp.run()


if __name__ == "__main__":
    main()
