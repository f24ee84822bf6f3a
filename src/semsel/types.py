from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import MappingLoadError

logger = logging.getLogger(__name__)

MAX_ALTERNATIVE_NAMES = 10
MIN_ALTERNATIVE_NAME_LENGTH = 3


class ElementRecord(BaseModel):
    """One observed UI element as stored in a mapping file."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    tag_name: str = Field(alias="tagName")
    id: str | None = None
    classes: list[str] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)
    inner_text: str | None = Field(default=None, alias="innerText")
    xpath: str
    semantic_key: str | None = Field(default=None, alias="semanticKey")
    alternative_names: list[str] = Field(default_factory=list, alias="alternativeNames")
    alternative_selectors: list[str] = Field(default_factory=list, alias="alternativeSelectors")
    feature_name: str | None = Field(default=None, alias="featureName")
    url: str | None = None
    stable_id: str | None = Field(default=None, alias="stableId")

    @field_validator("tag_name", mode="before")
    @classmethod
    def _lower_tag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("id", "semantic_key", "feature_name", "url", "stable_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("inner_text", mode="before")
    @classmethod
    def _trim_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("classes", "alternative_selectors", mode="before")
    @classmethod
    def _null_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("attributes", mode="before")
    @classmethod
    def _stringify_attributes(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(key): str(item) for key, item in value.items() if item is not None}
        return value

    @field_validator("alternative_names", mode="before")
    @classmethod
    def _clean_alternative_names(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        seen: set[str] = set()
        cleaned: list[str] = []
        for raw in value:
            if not isinstance(raw, str):
                continue
            name = raw.strip()
            if len(name) < MIN_ALTERNATIVE_NAME_LENGTH or name.lower() in seen:
                continue
            seen.add(name.lower())
            cleaned.append(name)
            if len(cleaned) >= MAX_ALTERNATIVE_NAMES:
                break
        return cleaned

    def human_description(self) -> str:
        if self.inner_text:
            text = self.inner_text[:50]
            ellipsis = "..." if len(self.inner_text) > 50 else ""
            description = f'{self.tag_name} with text "{text}{ellipsis}"'
        else:
            description = f"{self.tag_name} element"
        if self.feature_name:
            description += f" (feature: {self.feature_name})"
        return description


class MappingMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: str | None = None
    timestamp: str | None = None
    feature_name: str | None = Field(default=None, alias="featureName")
    element_count: int | None = Field(default=None, alias="elementCount")


class MappingFile(BaseModel):
    """Named collection of element records; ``metadata`` is absent for legacy files."""

    model_config = ConfigDict(extra="ignore")

    metadata: MappingMetadata | None = None
    elements: list[ElementRecord] = Field(default_factory=list)


class KeySummary(BaseModel):
    key: str
    description: str


class KeySuggestion(BaseModel):
    key: str
    description: str
    score: int


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    element: ElementRecord
    score: int
    matched_alternative: str | None = None

    @property
    def key(self) -> str:
        return self.element.semantic_key or ""


def parse_mapping_payload(data: Any, source: str = "<memory>") -> MappingFile:
    """Validate decoded JSON in either the legacy or the versioned mapping shape.

    Only a wrong outer shape fails the whole file. Individual element records
    that do not validate are logged and skipped.
    """

    if isinstance(data, list):
        raw_metadata: Any = None
        raw_elements: list[Any] = data
    elif isinstance(data, dict) and isinstance(data.get("elements"), list):
        raw_metadata = data.get("metadata")
        raw_elements = data["elements"]
    else:
        raise MappingLoadError(source, "expected a list of elements or an object with 'elements'")

    metadata: MappingMetadata | None = None
    if raw_metadata is not None:
        try:
            metadata = MappingMetadata.model_validate(raw_metadata)
        except ValidationError as exc:
            raise MappingLoadError(source, f"invalid metadata ({exc.error_count()} errors)") from exc

    elements: list[ElementRecord] = []
    for index, raw in enumerate(raw_elements):
        try:
            element = ElementRecord.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "Skipping element %d in %s: invalid record (%d errors)",
                index,
                source,
                exc.error_count(),
            )
            continue
        elements.append(_inherit_metadata(element, metadata))
    return MappingFile(metadata=metadata, elements=elements)


def _inherit_metadata(element: ElementRecord, metadata: MappingMetadata | None) -> ElementRecord:
    if metadata is None:
        return element
    update: dict[str, Any] = {}
    if element.feature_name is None and metadata.feature_name:
        update["feature_name"] = metadata.feature_name
    if element.url is None and metadata.url:
        update["url"] = metadata.url
    return element.model_copy(update=update) if update else element
