from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..errors import InvalidPattern
from ..types import ElementRecord, MatchCandidate

logger = logging.getLogger(__name__)

_WORD_SPLIT = re.compile(r"[_\s]+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

MIN_WORD_LENGTH = 3


@dataclass(frozen=True, slots=True)
class ScoringWeights:
    """Additive weights used by every query mode."""

    exact_key: int = 100
    scoped_key: int = 95
    key_prefix: int = 90
    key_contains: int = 80
    wildcard: int = 70
    all_words: int = 60
    some_words: int = 40
    per_word: int = 5
    partial_scope_boost: int = 10
    partial_inner_text: int = 5

    description_key: int = 100
    key_segment: int = 10
    key_substring: int = 5
    alternative_exact: int = 100
    alternative_partial: int = 30
    tag_name: int = 15
    inner_text: int = 5
    description_scope_boost: int = 20


def is_partial_query(query: str) -> bool:
    return "_" not in query or query.endswith("_") or "*" in query


def compile_wildcard(pattern: str) -> re.Pattern[str]:
    """Turn ``*`` into ``.*``; all other characters keep their regex meaning."""

    try:
        return re.compile(pattern.replace("*", ".*"))
    except re.error as exc:
        raise InvalidPattern(pattern, str(exc)) from exc


def normalize_words(text: str) -> list[str]:
    return [word for word in _NON_ALNUM.split(text.lower()) if word]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class MatchEngine:
    """Scores a corpus of element records against a query.

    The engine evaluates exact key, partial key, wildcard and free-text
    description signals and keeps the best score per element. Ties are left
    in corpus order for the ambiguity detector to judge.
    """

    def __init__(self, weights: ScoringWeights | None = None) -> None:
        self.weights = weights or ScoringWeights()

    def match(
        self,
        query: str,
        scope: str | None,
        corpus: Iterable[ElementRecord],
    ) -> list[MatchCandidate]:
        keyed = [element for element in corpus if element.semantic_key]
        query = query.strip()
        if not query or not keyed:
            return []

        exact = self._exact_matches(query, scope, keyed)
        if exact:
            return exact

        lowered = query.lower()
        wildcard: re.Pattern[str] | None = None
        if "*" in lowered:
            try:
                wildcard = compile_wildcard(lowered)
            except InvalidPattern as exc:
                logger.warning("%s; wildcard tier disabled for this query", exc)

        partial = is_partial_query(query)
        describe = "*" not in query
        words = normalize_words(query)

        candidates: list[MatchCandidate] = []
        for element in keyed:
            best = 0
            matched_alternative: str | None = None
            if partial:
                best = self._score_partial(lowered, scope, element, wildcard)
            if describe:
                score, alternative = self._score_description(words, scope, element)
                if score > best:
                    best = score
                    matched_alternative = alternative
            if best > 0:
                candidates.append(
                    MatchCandidate(element=element, score=best, matched_alternative=matched_alternative)
                )

        candidates.sort(key=lambda candidate: candidate.score, reverse=True)
        if candidates:
            logger.debug(
                "Query '%s' top matches: %s",
                query,
                ", ".join(f"{c.key} ({c.score})" for c in candidates[:3]),
            )
        return candidates

    def _exact_matches(
        self,
        query: str,
        scope: str | None,
        keyed: Sequence[ElementRecord],
    ) -> list[MatchCandidate]:
        lookups = [f"{scope.lower()}_{query}", query] if scope else [query]
        for key in lookups:
            hits = [element for element in keyed if element.semantic_key == key]
            if hits:
                return [MatchCandidate(element=element, score=self.weights.exact_key) for element in hits]
        return []

    def _score_partial(
        self,
        query: str,
        scope: str | None,
        element: ElementRecord,
        wildcard: re.Pattern[str] | None,
    ) -> int:
        weights = self.weights
        key = (element.semantic_key or "").lower()
        scope_prefix = f"{scope.lower()}_" if scope else None

        score = 0
        if key == query:
            score = weights.exact_key
        elif scope_prefix and key == scope_prefix + query:
            score = weights.scoped_key
        elif key.startswith(query):
            score = weights.key_prefix
        elif query in key:
            score = weights.key_contains
        elif "*" in query:
            if wildcard is not None and wildcard.search(key):
                score = weights.wildcard
        else:
            words = [word for word in _WORD_SPLIT.split(query) if len(word) >= MIN_WORD_LENGTH]
            if words:
                matched = sum(1 for word in words if word in key)
                if matched == len(words):
                    score = weights.all_words + matched * weights.per_word
                elif matched:
                    score = weights.some_words + matched * weights.per_word

        if score > 0 and self._in_scope(element, scope):
            score += weights.partial_scope_boost
        if score > 0 and "*" not in query and element.inner_text:
            text = element.inner_text.lower()
            if any(len(word) >= MIN_WORD_LENGTH and word in text for word in _WORD_SPLIT.split(query)):
                score += weights.partial_inner_text
        return score

    def _score_description(
        self,
        words: Sequence[str],
        scope: str | None,
        element: ElementRecord,
    ) -> tuple[int, str | None]:
        weights = self.weights
        significant = [word for word in words if len(word) >= MIN_WORD_LENGTH]
        key = (element.semantic_key or "").lower()
        segments = key.split("_")
        score = 0

        if significant and "_".join(segments[1:]) == "_".join(significant):
            score += weights.description_key

        for word in significant:
            if word in segments:
                score += weights.key_segment
            elif word in key:
                score += weights.key_substring

        normalized_query = " ".join(words)
        matched_alternative: str | None = None
        for name in element.alternative_names:
            candidate = name.strip().lower()
            if candidate == normalized_query or " ".join(normalize_words(candidate)) == normalized_query:
                score += weights.alternative_exact
                matched_alternative = name
                break
            if significant:
                matched = sum(1 for word in significant if word in candidate)
                if matched:
                    score += _round_half_up(weights.alternative_partial * matched / len(significant))

        if element.tag_name in words:
            score += weights.tag_name

        if element.inner_text:
            text = element.inner_text.lower()
            score += sum(weights.inner_text for word in significant if word in text)

        if score > 0 and self._in_scope(element, scope):
            score += weights.description_scope_boost
        return score, matched_alternative

    @staticmethod
    def _in_scope(element: ElementRecord, scope: str | None) -> bool:
        if not scope:
            return False
        if element.feature_name == scope:
            return True
        return (element.semantic_key or "").lower().startswith(f"{scope.lower()}_")
