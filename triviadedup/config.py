from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .dedup.dedup_config import DedupConfig


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_dir: str = "logs"
    filename: str = "triviadedup.log"
    structured: bool = False


@dataclass
class StoreConfig:
    """Where questions live: a Supabase/PostgREST table or a JSONL export."""

    url: Optional[str] = field(default_factory=lambda: os.getenv("SUPABASE_URL") or None)
    key: Optional[str] = field(
        default_factory=lambda: os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_SERVICE_KEY") or None
    )
    table: str = field(default_factory=lambda: os.getenv("TRIVIA_TABLE", "trivia_questions"))
    page_size: int = 1000
    page_delay: float = field(default_factory=lambda: _env_float("DEDUP_PAGE_DELAY", "0.1"))
    jsonl_path: Optional[str] = None


@dataclass
class ResolutionConfig:
    batch_size: int = 10
    batch_delay: float = field(default_factory=lambda: _env_float("DEDUP_BATCH_DELAY", "0.5"))


@dataclass
class AppConfig:
    logging: LoggingConfig = None  # type: ignore[assignment]
    store: StoreConfig = None  # type: ignore[assignment]
    dedup: DedupConfig = None  # type: ignore[assignment]
    resolution: ResolutionConfig = None  # type: ignore[assignment]

    @staticmethod
    def from_dict(payload: dict) -> "AppConfig":
        return AppConfig(
            logging=LoggingConfig(**payload.get("logging", {})),
            store=StoreConfig(**payload.get("store", {})),
            dedup=DedupConfig.from_dict(payload.get("dedup", {})),
            resolution=ResolutionConfig(**payload.get("resolution", {})),
        )

    @staticmethod
    def from_json(path: str | Path) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        return AppConfig.from_dict(payload)

    @staticmethod
    def from_yaml(path: str | Path) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
        return AppConfig.from_dict(payload)

    @staticmethod
    def from_file(path: str | Path) -> "AppConfig":
        """Load a JSON or YAML config, chosen by suffix."""
        suffix = Path(path).suffix.lower()
        if suffix == ".json":
            return AppConfig.from_json(path)
        if suffix in (".yaml", ".yml"):
            return AppConfig.from_yaml(path)
        raise ValueError(f"Unsupported config format: {suffix or '(none)'}")

    def to_dict(self) -> dict:
        return {
            "logging": asdict(self.logging),
            "store": asdict(self.store),
            "dedup": self.dedup.to_dict(),
            "resolution": asdict(self.resolution),
        }

    def to_json(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)


# Provide safe defaults via a factory function for top-level config
def default_app_config() -> AppConfig:
    return AppConfig(
        logging=LoggingConfig(),
        store=StoreConfig(),
        dedup=DedupConfig(),
        resolution=ResolutionConfig(),
    )
