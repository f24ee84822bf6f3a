from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..collaborators import PageDriver
from ..config import Settings
from ..errors import NotFound
from ..logging import set_query_context
from ..store import MappingStore
from ..types import ElementRecord, KeySuggestion, KeySummary, MatchCandidate
from .ambiguity import AmbiguityDetector, Assessment
from .context import ContextResolver, NullContextResolver, TestFileContextResolver
from .engine import MatchEngine, ScoringWeights
from .selectors import synthesize

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Resolution:
    query: str
    scope: str | None
    selector: str
    candidate: MatchCandidate
    assessment: Assessment


class SemanticSelectors:
    """Resolves human-readable element descriptions to selector strings."""

    def __init__(
        self,
        store: MappingStore | None = None,
        engine: MatchEngine | None = None,
        detector: AmbiguityDetector | None = None,
        context: ContextResolver | None = None,
        mapping_dir: Path | str = Path("mappings"),
    ) -> None:
        self.store = store or MappingStore()
        self.engine = engine or MatchEngine()
        self.detector = detector or AmbiguityDetector()
        self.context: ContextResolver = context or NullContextResolver()
        self.mapping_dir = Path(mapping_dir)

    @classmethod
    def from_settings(cls, settings: Settings, weights: ScoringWeights | None = None) -> "SemanticSelectors":
        context: ContextResolver = TestFileContextResolver() if settings.infer_scope else NullContextResolver()
        return cls(
            engine=MatchEngine(weights),
            detector=AmbiguityDetector(settings.ambiguity_ratio),
            context=context,
            mapping_dir=settings.mapping_dir,
        )

    def corpus(self, mapping_dir: Path | str | None = None) -> list[ElementRecord]:
        return self.store.load(mapping_dir if mapping_dir is not None else self.mapping_dir)

    def resolve(
        self,
        query: str,
        scope: str | None = None,
        mapping_dir: Path | str | None = None,
    ) -> Resolution:
        corpus = self.corpus(mapping_dir)
        if not scope:
            scope = self._infer_scope(query)
            if scope:
                logger.debug("Inferred scope '%s' for query '%s'", scope, query)
        set_query_context(query=query, scope=scope)

        candidates = self.engine.match(query, scope, corpus)
        if not candidates:
            raise NotFound(query)

        assessment = self.detector.assess(candidates, scope, query=query)
        winner = assessment.winner
        if winner is None:
            raise NotFound(query)

        selector = synthesize(winner.element)
        logger.info(
            "Resolved '%s' to %s via '%s' (score %d)",
            query,
            selector,
            winner.key,
            winner.score,
        )
        return Resolution(
            query=query,
            scope=scope,
            selector=selector,
            candidate=winner,
            assessment=assessment,
        )

    def _infer_scope(self, query: str) -> str | None:
        # Scope inference is advisory; a failing resolver only loses the scope boost.
        try:
            return self.context.resolve_scope(self.store)
        except Exception:
            logger.debug("Scope inference failed for query '%s'", query, exc_info=True)
            return None

    def resolve_selector(
        self,
        query: str,
        scope: str | None = None,
        mapping_dir: Path | str | None = None,
    ) -> str:
        return self.resolve(query, scope, mapping_dir).selector

    def locate(
        self,
        driver: PageDriver,
        query: str,
        scope: str | None = None,
        mapping_dir: Path | str | None = None,
    ) -> Any:
        """Resolve ``query`` and hand the selector to the page driver."""

        return driver.resolve_locator(self.resolve_selector(query, scope, mapping_dir))

    def clear_cache(self) -> None:
        self.store.clear()

    def list_keys(self, mapping_dir: Path | str | None = None) -> list[KeySummary]:
        return [
            KeySummary(key=element.semantic_key, description=element.human_description())
            for element in self.corpus(mapping_dir)
            if element.semantic_key
        ]

    def feature_keys(self, feature: str, mapping_dir: Path | str | None = None) -> list[KeySummary]:
        prefix = f"{feature.lower()}_"
        marker = f"(feature: {feature})"
        return [
            item
            for item in self.list_keys(mapping_dir)
            if item.key.startswith(prefix) or marker in item.description
        ]

    def suggest_keys(
        self,
        description: str,
        mapping_dir: Path | str | None = None,
        limit: int = 10,
    ) -> list[KeySuggestion]:
        words = [word for word in description.lower().split() if len(word) >= 3]
        suggestions: list[KeySuggestion] = []
        for item in self.list_keys(mapping_dir):
            key = item.key.lower()
            text = item.description.lower()
            score = sum(5 for word in words if word in key) + sum(3 for word in words if word in text)
            if score > 0:
                suggestions.append(KeySuggestion(key=item.key, description=item.description, score=score))
        suggestions.sort(key=lambda suggestion: suggestion.score, reverse=True)
        return suggestions[:limit]


_default: SemanticSelectors | None = None


def default_selectors() -> SemanticSelectors:
    global _default
    if _default is None:
        _default = SemanticSelectors.from_settings(Settings.from_env())
    return _default


def resolve_selector(query: str, scope: str | None = None, mapping_dir: Path | str | None = None) -> str:
    return default_selectors().resolve_selector(query, scope, mapping_dir)


def clear_cache() -> None:
    default_selectors().clear_cache()


def list_keys(mapping_dir: Path | str | None = None) -> list[KeySummary]:
    return default_selectors().list_keys(mapping_dir)
