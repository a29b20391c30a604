"""MCP service surface for the search navigator."""
