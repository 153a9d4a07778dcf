"""
Query type patterns.

Ordered most specific first; the first type with a matching pattern wins.

Dependencies: re (stdlib)
System role: Static pattern tables for the query classifier
"""

import re

from docqa.models.classification import QueryType

_I = re.IGNORECASE

TYPE_PATTERNS: tuple[tuple[QueryType, tuple[re.Pattern, ...]], ...] = (
    (
        QueryType.SPECIFIC,
        (
            re.compile(r"\"[^\"]{2,}\"|“[^”]{2,}”|(?:^|\s)'[^']{3,}'(?=\s|$|[?.!,])"),
            re.compile(r"\b(exact|exactly|precise|precisely|specific|specifically|particular|verbatim)\b", _I),
            re.compile(r"\b(in detail|detailed)\b", _I),
        ),
    ),
    (
        QueryType.COMPARATIVE,
        (
            re.compile(r"\b(compare|compared|comparing|comparison|versus|vs\.?)\b", _I),
            re.compile(r"\b(difference|differences|differ|differs|contrast)\b", _I),
            re.compile(r"\b(better|worse|faster|slower) than\b", _I),
            re.compile(r"\b(similar to|unlike|between)\b", _I),
        ),
    ),
    (
        QueryType.SUMMARIZATION,
        (
            re.compile(r"\b(summar(y|ize|ise|izing|ising)|overview|recap|outline|tl;?dr)\b", _I),
            re.compile(r"\b(key|main) (points|takeaways|ideas|findings)\b", _I),
            re.compile(r"\b(highlights|brief|gist)\b", _I),
        ),
    ),
    (
        QueryType.FACTUAL,
        (
            re.compile(r"^\s*what\b(?!\s+(causes?|caused|makes?|made|leads?|led|drives?)\b)", _I),
            re.compile(r"^\s*(who|whom|whose|when|where|which)\b", _I),
            re.compile(r"^\s*how (many|much|long|old|often)\b", _I),
            re.compile(r"^\s*(is|are|was|were|does|do|did|has|have|had|can|could|will|would|should)\b", _I),
        ),
    ),
    (
        QueryType.EXPLANATORY,
        (
            re.compile(r"\b(why|how)\b", _I),
            re.compile(r"\b(explain|explanation|describe|elaborate|clarify)\b", _I),
            re.compile(r"\btell me about\b", _I),
            re.compile(r"^\s*what (causes?|caused|makes?|made|leads?|led|drives?)\b", _I),
        ),
    ),
)

DOCUMENT_PHRASE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\btell me about\s+(?:the\s+)?(.+?)[?.!]*$", _I),
    re.compile(r"\babout\s+(?:the\s+)?(.+?)[?.!]*$", _I),
    re.compile(r"\b(?:in|from)\s+(?:the\s+)?(.+?)\s+(?:document|file|doc|pdf)\b", _I),
)

QUOTED = re.compile(r"\"([^\"]+)\"|“([^”]+)”|(?:^|\s)'([^']{3,})'(?=\s|$|[?.!,])")

FOLLOW_UP_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\b(it|its|they|them|their|this|that|these|those|he|she|his|her)\b", _I),
    re.compile(r"^\s*(and|but|also|so|then|what about|how about)\b", _I),
    re.compile(r"\b(tell me more|more about|the same|previous|above|earlier|mentioned|you said)\b", _I),
)

BROAD_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"^\s*(help|info|information|anything|everything|stuff|details|more|status)\s*[?.!]*\s*$", _I),
    re.compile(r"^\s*(tell me (more|something)|any updates?|what else|what can you do)\s*[?.!]*\s*$", _I),
)
