"""MCP tool registrations (importing a module registers its tools)."""
