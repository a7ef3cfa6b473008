"""
Domain models: LLM responses, roadmaps and research results.
"""

from .research import ResourceComparisonResult, TopicAnalysisResult
from .roadmap import (
    ComprehensiveRoadmapResult,
    GeneratedWith,
    GenerationOptions,
    LearnerProfile,
    Methodology,
    Roadmap,
    RoadmapMetadata,
    RoadmapStep,
    SkillStrength,
)
from .unified_response import NormalizedError, TokenUsage, UnifiedResponse

__all__ = [
    "ComprehensiveRoadmapResult",
    "GeneratedWith",
    "GenerationOptions",
    "LearnerProfile",
    "Methodology",
    "NormalizedError",
    "ResourceComparisonResult",
    "Roadmap",
    "RoadmapMetadata",
    "RoadmapStep",
    "SkillStrength",
    "TokenUsage",
    "TopicAnalysisResult",
    "UnifiedResponse",
]
