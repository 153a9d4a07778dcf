"""Agentic system: retrieval orchestration."""
