import logging
import os
from dataclasses import dataclass

from ftpctl.core.connection import CONTROL_PORT, DEFAULT_TIMEOUT_MS
from ftpctl.core.data_connection import DataConnectMode

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ClientConfig:
    """Parametros de conexion, leidos de variables de entorno FTPCTL_*."""
    host: str = "127.0.0.1"
    port: int = CONTROL_PORT
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    data_mode: DataConnectMode = DataConnectMode.PASSIVE
    log_level: str = "INFO"

    def __post_init__(self):
        if not 1 <= self.port <= 65535:
            raise ValueError(f"FTPCTL_PORT out of range: {self.port}")
        if self.timeout_ms < 0:
            raise ValueError(f"FTPCTL_TIMEOUT_MS must be >= 0: {self.timeout_ms}")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"FTPCTL_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}: {self.log_level}")

    @classmethod
    def from_env(cls, environ=None) -> "ClientConfig":
        env = os.environ if environ is None else environ
        config = cls(
            host=env.get("FTPCTL_HOST", "127.0.0.1"),
            port=_int_var(env, "FTPCTL_PORT", CONTROL_PORT),
            timeout_ms=_int_var(env, "FTPCTL_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            data_mode=DataConnectMode.parse(env.get("FTPCTL_DATA_MODE", "passive")),
            log_level=env.get("FTPCTL_LOG_LEVEL", "INFO")
        )
        logger.debug("Loaded config: %s", config)
        return config


def _int_var(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
