"""MCP tools for the Europarcel server, grouped by API area."""
