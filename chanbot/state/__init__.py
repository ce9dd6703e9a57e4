"""Persistent plugin state."""
