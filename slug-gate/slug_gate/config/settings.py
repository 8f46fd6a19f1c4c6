"""
Gate Process Settings
=====================
Process-level configuration from environment variables.
"""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DEFAULT_CONFIG_DIR = "gate-config"
DEFAULT_CHUNK_SIZE = 64 * 1024
SERVICE_NAME = "slug-gate"


@dataclass(frozen=True)
class GateSettings:
    """Settings for one gate process."""
    config_dir: str = DEFAULT_CONFIG_DIR
    log_level: str = "INFO"
    json_logs: bool = True
    chunk_size: int = DEFAULT_CHUNK_SIZE
    environment: str = "production"
    service_name: str = SERVICE_NAME

    @classmethod
    def from_env(cls) -> "GateSettings":
        """Read settings from ESP_GATE_* variables."""
        return cls(
            config_dir=os.getenv("ESP_GATE_CONFIG_DIR", os.path.join(os.getcwd(), DEFAULT_CONFIG_DIR)),
            log_level=os.getenv("ESP_GATE_LOG_LEVEL", "INFO"),
            json_logs=_env_bool("ESP_GATE_JSON_LOGS", True),
            chunk_size=max(1, int(os.getenv("ESP_GATE_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE)))),
            environment=os.getenv("ESP_GATE_ENVIRONMENT", "production"),
        )
