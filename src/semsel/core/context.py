from __future__ import annotations

import inspect
import logging
import re
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

from ..store import MappingStore

logger = logging.getLogger(__name__)

_GOTO_PATTERN = re.compile(r"""\.goto\s*\(\s*['"]([^'"]+)['"]""")
_TEST_FILE_PATTERN = re.compile(r"(^test_.*|.*_test)\.py$")


def url_slug(url: str) -> str:
    parsed = urlparse(url)
    host = (parsed.hostname or "").replace(".", "_")
    return host + parsed.path.replace("/", "_")


def mapping_filename(url: str, feature: str | None = None) -> str:
    """File name a mapping producer uses for ``url``, optionally prefixed with a feature."""

    prefix = f"{feature.lower()}_" if feature else ""
    return f"{prefix}{url_slug(url)}.json"


class ContextResolver(Protocol):
    def resolve_scope(self, store: MappingStore) -> str | None:
        """Return a best-effort scope for the current caller, or ``None``."""


class NullContextResolver:
    def resolve_scope(self, store: MappingStore) -> str | None:
        return None


class TestFileContextResolver:
    """Infers scope from the URL the calling test module navigates to.

    The calling test file is found on the Python stack, scanned for a
    ``page.goto("...")`` call, and the URL is matched against the names of
    cached mapping files. Whatever precedes the URL slug in a file name
    (``<feature>_<host>_<path>.json``) is the feature.
    """

    __test__ = False

    def __init__(self) -> None:
        self._urls: dict[Path, str | None] = {}

    def resolve_scope(self, store: MappingStore) -> str | None:
        try:
            test_file = self._calling_test_file()
            if test_file is None:
                return None
            url = self._url_for(test_file)
            if url is None:
                return None
            return self._feature_for_url(url, store.files)
        except (OSError, ValueError) as exc:
            logger.debug("Failed to infer scope from calling context: %s", exc)
            return None

    def remember(self, test_file: Path | str, url: str) -> None:
        self._urls[Path(test_file).resolve()] = url

    @staticmethod
    def _calling_test_file() -> Path | None:
        for frame in inspect.stack(context=0):
            path = Path(frame.filename)
            if _TEST_FILE_PATTERN.match(path.name):
                return path.resolve()
        return None

    def _url_for(self, test_file: Path) -> str | None:
        if test_file in self._urls:
            return self._urls[test_file]
        url: str | None = None
        if test_file.is_file():
            match = _GOTO_PATTERN.search(test_file.read_text(encoding="utf-8"))
            if match:
                url = match.group(1)
        self._urls[test_file] = url
        return url

    @staticmethod
    def _feature_for_url(url: str, files: list[Path]) -> str | None:
        slug = url_slug(url)
        if not slug:
            return None
        for path in files:
            index = path.stem.find(slug)
            if index > 0:
                prefix = path.stem[:index].rstrip("_")
                if prefix:
                    return prefix
        return None
