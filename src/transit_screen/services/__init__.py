"""Display pipeline services."""
