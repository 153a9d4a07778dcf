"""
Confidence scoring settings.

Weights and floor corrections for answer confidence. The floors encode product
judgment and are exposed as configuration.

Dependencies: pydantic, pydantic_settings
System role: Answer confidence tuning
"""

from pydantic import Field

from docqa.configs.base import DocQASettings, settings_config


class ConfidenceSettings(DocQASettings):
    """Confidence score configuration (scores are 0-100)."""

    model_config = settings_config("CONFIDENCE_")

    top_weight: float = Field(default=0.4, description="Weight of the top similarity")
    top3_weight: float = Field(default=0.3, description="Weight of the mean of the top 3")
    coverage_weight: float = Field(default=0.2, description="Weight of highly relevant chunk count")
    diversity_weight: float = Field(default=0.1, description="Weight of source diversity")

    highly_relevant_bar: float = Field(default=0.65, description="Similarity above which a chunk counts as highly relevant")
    coverage_saturation: int = Field(
        default=3,
        description="Highly relevant chunks needed for full coverage credit",
    )
    diversity_saturation: int = Field(
        default=3,
        description="Distinct sources needed for full diversity credit",
    )

    floors: list[tuple[float, int]] = Field(
        default=[(0.8, 75), (0.7, 65), (0.6, 55)],
        description="(top similarity strictly above, minimum confidence) pairs",
    )
    low_confidence_cap: int = Field(
        default=40,
        description="Ceiling applied when every chunk is flagged low-confidence",
    )
    general_knowledge_confidence: int = Field(default=70)
    max_confidence: int = Field(default=99, description="Ceiling for retrieval-backed answers")
