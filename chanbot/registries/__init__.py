"""Plugin registry."""
