from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence


class SemselError(Exception):
    """Base class for selector resolution exceptions."""


class MappingLoadError(SemselError):
    """Raised when a mapping file is malformed or has an unrecognized shape."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to load mapping file {self.path}: {reason}")


class NotFound(SemselError):
    """Raised when no element in the corpus matches a query."""

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"No element matching '{query}' found in any mapping files")


class AmbiguousAcrossFeatures(SemselError):
    """Raised when equally plausible matches live in different features and no scope was given."""

    def __init__(
        self,
        query: str,
        features: Sequence[str],
        suggestions: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        self.query = query
        self.features = list(features)
        self.suggestions = {key: list(names) for key, names in (suggestions or {}).items()}
        message = (
            f"Query '{query}' is ambiguous across features {self.features}; "
            "retry with an explicit scope"
        )
        hints = [f"{key}: {', '.join(names)}" for key, names in self.suggestions.items() if names]
        if hints:
            message += ". More specific descriptions: " + "; ".join(hints)
        super().__init__(message)


class InvalidPattern(SemselError):
    """Raised when a wildcard query cannot be compiled into a regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid wildcard pattern '{pattern}': {reason}")
