"""Adapters – concrete log-service clients."""
