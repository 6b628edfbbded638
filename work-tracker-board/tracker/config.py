from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tracker.config_utils import env_choice, env_int, env_optional_str, env_str


DELETE_CASCADE = "cascade"
DELETE_UNASSIGN = "unassign"
DELETE_POLICIES = (DELETE_CASCADE, DELETE_UNASSIGN)


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class TrackerConfig:
    """Runtime configuration for the board UI and the blob store.

    Environment variables:
    - TRACKER_API_URL: base URL of the blob store (default: http://localhost:3000)
    - TRACKER_API_TIMEOUT_SECONDS: HTTP timeout used by the UI client (default: 30)
    - TRACKER_DATA_DIR: where the store keeps data.json (default: <repo>/data)
    - TRACKER_HOST / TRACKER_PORT: blob store bind address (default: 0.0.0.0:3000)
    - TRACKER_MAX_BODY_MB: largest accepted save payload (default: 50)
    - TRACKER_DELETE_POLICY: cascade|unassign, what happens to tasks when their
      release or feature area is deleted (default: cascade)
    - TRACKER_LOG_LEVEL / TRACKER_LOG_DIR: logging setup

    The data directory is not created here; the store creates it on first write.
    """

    api_url: str
    api_timeout_seconds: int
    data_dir: Path
    host: str
    port: int
    max_body_bytes: int
    delete_policy: str
    log_level: str
    log_dir: Optional[str]

    @property
    def data_file(self) -> Path:
        return self.data_dir / "data.json"

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        data_dir = env_optional_str("TRACKER_DATA_DIR")
        return cls(
            api_url=env_str("TRACKER_API_URL", "http://localhost:3000").rstrip("/"),
            api_timeout_seconds=env_int("TRACKER_API_TIMEOUT_SECONDS", 30, minimum=1),
            data_dir=Path(data_dir) if data_dir else _repo_root() / "data",
            host=env_str("TRACKER_HOST", "0.0.0.0"),
            port=env_int("TRACKER_PORT", 3000, minimum=1),
            max_body_bytes=env_int("TRACKER_MAX_BODY_MB", 50, minimum=1) * 1024 * 1024,
            delete_policy=env_choice("TRACKER_DELETE_POLICY", DELETE_CASCADE, DELETE_POLICIES),
            log_level=env_str("TRACKER_LOG_LEVEL", "INFO").upper(),
            log_dir=env_optional_str("TRACKER_LOG_DIR"),
        )


_config: Optional[TrackerConfig] = None


def get_config() -> TrackerConfig:
    """Get the tracker configuration (cached)."""
    global _config
    if _config is None:
        _config = TrackerConfig.from_env()
    return _config


def reset_config() -> None:
    global _config
    _config = None
