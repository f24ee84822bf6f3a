from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..config import DEFAULT_AMBIGUITY_RATIO
from ..errors import AmbiguousAcrossFeatures
from ..types import MatchCandidate

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Assessment:
    winner: MatchCandidate | None
    ambiguous: bool = False
    warnings: list[str] = field(default_factory=list)
    suggestions: dict[str, list[str]] = field(default_factory=dict)
    features: list[str] = field(default_factory=list)


class AmbiguityDetector:
    """Decides whether the leading candidates are too close to call."""

    TOP_N = 3
    MAX_SUGGESTIONS = 3

    def __init__(self, ratio: float = DEFAULT_AMBIGUITY_RATIO) -> None:
        self.ratio = ratio

    def is_ambiguous(self, top: float, runner_up: float) -> bool:
        return runner_up >= top * self.ratio

    def assess(
        self,
        candidates: Sequence[MatchCandidate],
        scope: str | None = None,
        query: str = "",
    ) -> Assessment:
        if not candidates:
            return Assessment(winner=None)
        if len(candidates) < 2:
            return Assessment(winner=candidates[0])

        leader, runner_up = candidates[0], candidates[1]
        if not self.is_ambiguous(leader.score, runner_up.score):
            return Assessment(winner=leader)

        top = list(candidates[: self.TOP_N])
        warning = (
            f"Ambiguous match for '{query}': '{leader.key}' (score {leader.score}) "
            f"vs '{runner_up.key}' (score {runner_up.score})"
        )
        suggestions = {candidate.key: self._more_specific_names(candidate, query) for candidate in top}
        features = sorted({candidate.element.feature_name for candidate in top if candidate.element.feature_name})

        logger.warning("%s", warning)
        if len(features) > 1 and not scope:
            raise AmbiguousAcrossFeatures(query, features, suggestions)

        warnings = [warning]
        for key, names in suggestions.items():
            if names:
                hint = f"Consider a more specific description for '{key}': {', '.join(names)}"
                logger.info("%s", hint)
                warnings.append(hint)

        return Assessment(
            winner=leader,
            ambiguous=True,
            warnings=warnings,
            suggestions=suggestions,
            features=features,
        )

    def _more_specific_names(self, candidate: MatchCandidate, query: str) -> list[str]:
        longer = [name for name in candidate.element.alternative_names if len(name) > len(query)]
        longer.sort(key=len, reverse=True)
        return longer[: self.MAX_SUGGESTIONS]
