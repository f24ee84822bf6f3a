from __future__ import annotations

from .ambiguity import AmbiguityDetector, Assessment
from .context import ContextResolver, NullContextResolver, TestFileContextResolver, mapping_filename
from .engine import MatchEngine, ScoringWeights
from .resolver import Resolution, SemanticSelectors
from .selectors import synthesize

__all__ = [
    "AmbiguityDetector",
    "Assessment",
    "ContextResolver",
    "NullContextResolver",
    "TestFileContextResolver",
    "mapping_filename",
    "MatchEngine",
    "ScoringWeights",
    "Resolution",
    "SemanticSelectors",
    "synthesize",
]
