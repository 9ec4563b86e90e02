"""
Context Engine MCP.

Multi-tenant context storage, tool dispatch, similarity search and intent
routing behind a Model Context Protocol command surface.
"""

__version__ = "0.1.0"
