from __future__ import annotations

from .core.resolver import SemanticSelectors, clear_cache, list_keys, resolve_selector
from .errors import AmbiguousAcrossFeatures, InvalidPattern, MappingLoadError, NotFound, SemselError
from .store import MappingStore
from .types import ElementRecord, MappingFile

__version__ = "0.1.0"

__all__ = [
    "SemanticSelectors",
    "MappingStore",
    "ElementRecord",
    "MappingFile",
    "resolve_selector",
    "clear_cache",
    "list_keys",
    "SemselError",
    "MappingLoadError",
    "NotFound",
    "AmbiguousAcrossFeatures",
    "InvalidPattern",
]
