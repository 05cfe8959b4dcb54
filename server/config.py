"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from recommender import RecommendationConfig

# Single .env at the project root
root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)

STORE_BACKENDS = ("json", "memory")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000

    # Persistence: "json" (files under data_dir) or "memory"
    data_dir: Path = Path(__file__).parent.parent / "data"
    store_backend: str = "json"

    # Reading sessions end after this much inactivity
    session_timeout_minutes: float = 30

    # Optional JSON file overriding recommender defaults
    recommender_config_path: Optional[Path] = None

    # forum_id -> URL of a JSON feed of normalized thread records
    source_feeds: Dict[str, str] = field(default_factory=dict)

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (base_dir / p).resolve()

        store_backend = os.getenv("STORE_BACKEND", "json").strip().lower()
        if store_backend not in STORE_BACKENDS:
            store_backend = "json"

        return cls(
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8000")),
            data_dir=_path_env("DATA_DIR", base_dir / "data"),
            store_backend=store_backend,
            session_timeout_minutes=float(os.getenv("SESSION_TIMEOUT_MINUTES", "30")),
            recommender_config_path=_path_env("RECOMMENDER_CONFIG_PATH"),
            source_feeds=parse_source_feeds(os.getenv("SOURCE_FEEDS", "")),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.session_timeout_minutes <= 0:
            errors.append("SESSION_TIMEOUT_MINUTES must be positive")

        if self.recommender_config_path and not self.recommender_config_path.is_file():
            errors.append(f"Recommender config not found: {self.recommender_config_path}")

        return len(errors) == 0, errors

    def ensure_directories(self):
        """Create required directories if they don't exist."""
        if self.store_backend == "json":
            self.data_dir.mkdir(parents=True, exist_ok=True)

    def load_recommendation_config(self) -> RecommendationConfig:
        """RecommendationConfig from recommender_config_path, or defaults."""
        if not self.recommender_config_path:
            return RecommendationConfig()
        with open(self.recommender_config_path, encoding="utf-8") as f:
            return RecommendationConfig.from_dict(json.load(f))


def parse_source_feeds(value: str) -> Dict[str, str]:
    """Parse "linux.do=https://...,nodeseek.com=https://..." into a dict."""
    feeds = {}
    for pair in value.split(","):
        forum_id, sep, url = pair.strip().partition("=")
        if sep and forum_id.strip() and url.strip():
            feeds[forum_id.strip()] = url.strip()
    return feeds


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the root logger."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
        _config.ensure_directories()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
