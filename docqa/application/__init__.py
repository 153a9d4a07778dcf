"""Application layer: transport-facing services."""
