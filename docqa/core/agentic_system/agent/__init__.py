"""
Retrieval agent module.

Provides the retrieval agent that answers questions from the chunk store with
graduated fallbacks, plus its prompts and confidence scoring.

Dependencies: langchain_core, docqa.core.retrieval
System role: Agent module exports
"""

from docqa.core.agentic_system.agent.agent_prompt import NO_INFORMATION_ANSWER
from docqa.core.agentic_system.agent.confidence import ConfidenceScorer
from docqa.core.agentic_system.agent.retrieval_agent import RetrievalAgent

__all__ = ["ConfidenceScorer", "NO_INFORMATION_ANSWER", "RetrievalAgent"]
