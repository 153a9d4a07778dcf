"""HTTP transport for the retrieval engine."""
