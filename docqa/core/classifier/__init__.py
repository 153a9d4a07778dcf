"""
Query classification.

Dependencies: docqa.configs
System role: Query typing and document reference detection
"""

from docqa.core.classifier.document_matcher import DocumentMatcher, name_similarity, normalize_name
from docqa.core.classifier.query_classifier import QueryClassifier

__all__ = ["DocumentMatcher", "QueryClassifier", "name_similarity", "normalize_name"]
