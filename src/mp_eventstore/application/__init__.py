"""Application layer – event sourcing use cases."""
