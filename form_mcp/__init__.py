"""
Form Canvas MCP Server - tools for AI agents, backed by the REST API.
"""
