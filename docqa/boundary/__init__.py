"""External collaborators: providers, stores, caches and persistence sinks."""
