from __future__ import annotations

import logging
import threading
from contextlib import ExitStack
from pathlib import Path

import orjson

from .errors import MappingLoadError
from .types import ElementRecord, MappingFile, MappingMetadata, parse_mapping_payload

logger = logging.getLogger(__name__)


class MappingStore:
    """Loads element records from mapping directories and caches them per file.

    Files are read once per process, or once again after :meth:`clear`.
    Nothing expires on its own; callers clear the store when mapping files
    change on disk.
    """

    def __init__(self) -> None:
        self._files: dict[Path, list[ElementRecord]] = {}
        self._metadata: dict[Path, MappingMetadata] = {}
        self._directories: dict[Path, list[Path]] = {}
        self._locks: dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()

    @property
    def files(self) -> list[Path]:
        return list(self._files)

    def load(self, directory: Path | str) -> list[ElementRecord]:
        root = Path(directory).expanduser().resolve()
        with self._directory_lock(root):
            paths = self._directories.get(root)
            if paths is None:
                paths = self._load_directory(root)
                self._directories[root] = paths
        return [element for path in paths for element in self._files.get(path, [])]

    def get(self, path: Path | str) -> list[ElementRecord] | None:
        return self._files.get(Path(path).expanduser().resolve())

    def metadata(self, path: Path | str) -> MappingMetadata | None:
        return self._metadata.get(Path(path).expanduser().resolve())

    def find_by_exact_key(self, key: str) -> ElementRecord | None:
        for elements in list(self._files.values()):
            for element in elements:
                if element.semantic_key == key:
                    return element
        return None

    def clear(self) -> None:
        # A directory load in flight must not straddle a clear.
        with self._guard, ExitStack() as stack:
            for lock in self._locks.values():
                stack.enter_context(lock)
            self._files.clear()
            self._metadata.clear()
            self._directories.clear()
        logger.debug("Mapping cache cleared")

    def _directory_lock(self, root: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(root)
            if lock is None:
                lock = threading.Lock()
                self._locks[root] = lock
            return lock

    def _load_directory(self, root: Path) -> list[Path]:
        if not root.is_dir():
            logger.warning("Mapping directory %s does not exist", root)
            return []

        paths = sorted(root.glob("*.json"))
        logger.info("Found %d mapping files in %s", len(paths), root)

        for path in paths:
            if path in self._files:
                continue
            try:
                mapping = self._parse_file(path)
            except MappingLoadError as exc:
                logger.warning("%s", exc)
                self._files[path] = []
                continue
            self._files[path] = mapping.elements
            if mapping.metadata is not None:
                self._metadata[path] = mapping.metadata
            logger.debug("Mapping file %s contains %d elements", path.name, len(mapping.elements))

        elements = [element for path in paths for element in self._files.get(path, [])]
        keyed = sum(1 for element in elements if element.semantic_key)
        logger.info(
            "Loaded %d elements (%d with semantic keys) from %s",
            len(elements),
            keyed,
            root,
        )
        return paths

    def _parse_file(self, path: Path) -> MappingFile:
        try:
            raw = self._read_file(path)
        except OSError as exc:
            raise MappingLoadError(path, str(exc)) from exc
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise MappingLoadError(path, f"invalid JSON: {exc}") from exc
        return parse_mapping_payload(data, source=str(path))

    def _read_file(self, path: Path) -> bytes:
        return path.read_bytes()
