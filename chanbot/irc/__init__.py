"""Chat protocol clients."""
