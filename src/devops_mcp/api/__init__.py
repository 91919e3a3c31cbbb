"""FastAPI surface for DevOps MCP."""
