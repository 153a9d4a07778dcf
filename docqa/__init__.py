"""
DocQA retrieval-augmented question answering backend.

Adaptive hybrid retrieval (vector + keyword with rank fusion), tiered caching,
and a clarify → retrieve → answer orchestrator.
"""

__version__ = "0.1.0"
