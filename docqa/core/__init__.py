"""
Core domain layer.

Retrieval algorithms, caching and orchestration. Depends on boundary
interfaces only through structural protocols.
"""
