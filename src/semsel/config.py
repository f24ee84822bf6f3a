from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


DEFAULT_AMBIGUITY_RATIO = 0.8


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _ratio_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if not 0.0 < value <= 1.0:
        return default
    return value


@dataclass(slots=True)
class Settings:
    """Resolver configuration loaded from environment variables."""

    mapping_dir: Path = Path("mappings")
    ambiguity_ratio: float = DEFAULT_AMBIGUITY_RATIO
    infer_scope: bool = False
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            mapping_dir=Path(os.getenv("SEMSEL_MAPPING_DIR", "mappings")),
            ambiguity_ratio=_ratio_env("SEMSEL_AMBIGUITY_RATIO", DEFAULT_AMBIGUITY_RATIO),
            infer_scope=_bool_env("SEMSEL_INFER_SCOPE", False),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_dir=Path(os.getenv("LOG_DIR", "logs")),
        )

    def ensure_directories(self) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)
