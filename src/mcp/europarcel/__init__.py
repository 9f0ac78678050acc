"""Europarcel shipping API exposed as MCP tools."""
