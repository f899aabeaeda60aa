"""
Config Manager

Loads config.yaml and layers environment variable overrides on top.
Produces the immutable AppConfig consumed by the rest of the application.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from models.config import AppConfig, ServerConfig, RedisConfig, ShutdownConfig
from models.enums import LogLevel
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)


# (section, key, env var, parser)
ENV_OVERRIDES = [
    ("server", "host", "APP_HOST", str),
    ("server", "port", "APP_PORT", int),
    ("server", "version", "APP_VERSION", str),
    ("redis", "host", "REDIS_HOST", str),
    ("redis", "port", "REDIS_PORT", int),
    ("redis", "password", "REDIS_PASSWORD", str),
    ("redis", "connect_timeout", "REDIS_CONNECT_TIMEOUT", float),
    ("redis", "retry_delay", "REDIS_RETRY_DELAY", float),
    ("shutdown", "drain_timeout", "SHUTDOWN_TIMEOUT", float),
    ("shutdown", "handler_timeout", "SHUTDOWN_HANDLER_TIMEOUT", float),
    ("logging", "level", "LOG_LEVEL", str),
]


class ConfigManager:
    """
    Configuration loader

    Resolution order (last wins):
      1. dataclass defaults in models.config
      2. config.yaml (missing or unreadable file -> defaults, logged)
      3. environment variables (see ENV_OVERRIDES)

    A value that cannot be parsed (e.g. APP_PORT=abc) is logged and the
    previous layer's value is kept; loading never fails.

    Example:
        config = ConfigManager().load()
        config.redis.host   # "localhost" unless REDIS_HOST is set
    """

    def __init__(self, config_path="config/config.yaml", env: Optional[Mapping[str, str]] = None):
        """
        Args:
            config_path: Path to config.yaml (relative paths resolve against src/)
            env: Environment mapping (default: os.environ)
        """
        self.config_path = Path(config_path)
        self.env = os.environ if env is None else env
        self.data: Dict[str, Dict[str, Any]] = {}

    def load(self) -> AppConfig:
        self.data = self._load_file()
        self._apply_env_overrides()
        config = self._build()

        log.info(
            "Configuration loaded",
            port=config.server.port,
            redis=f"{config.redis.host}:{config.redis.port}",
            version=config.server.version,
        )
        return config

    # ===== Loading =====

    def _resolve_path(self) -> Path:
        if self.config_path.is_absolute():
            return self.config_path
        src_dir = Path(__file__).parent.parent
        return src_dir / self.config_path

    def _load_file(self) -> Dict[str, Dict[str, Any]]:
        path = self._resolve_path()
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except FileNotFoundError:
            log.warn(f"Config file not found: {path}, using defaults")
            return {}
        except (OSError, yaml.YAMLError) as ex:
            log.error("Failed to load config.yaml", error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to defaults")
            return {}

        if not isinstance(raw, dict):
            log.error("config.yaml root must be a mapping, using defaults")
            return {}

        return {k: dict(v) for k, v in raw.items() if isinstance(v, dict)}

    def _apply_env_overrides(self) -> None:
        for section, key, var, _ in ENV_OVERRIDES:
            value = self.env.get(var)
            if value is None or value == "":
                continue
            self.data.setdefault(section, {})[key] = value
            log.debug(f"Override from {var}", section=section, key=key)

    # ===== Building =====

    def _value(self, section: str, key: str, parser: Callable, default):
        raw = self.data.get(section, {}).get(key)
        if raw is None:
            return default
        try:
            value = parser(raw)
        except (TypeError, ValueError):
            log.warn(f"Invalid value for {section}.{key}: {raw!r}, using default {default!r}")
            return default
        if parser in (int, float) and value <= 0:
            log.warn(f"Non-positive value for {section}.{key}: {raw!r}, using default {default!r}")
            return default
        return value

    def _build(self) -> AppConfig:
        server = ServerConfig(
            host=self._value("server", "host", str, ServerConfig.host),
            port=self._value("server", "port", int, ServerConfig.port),
            version=self._value("server", "version", str, ServerConfig.version),
        )
        redis = RedisConfig(
            host=self._value("redis", "host", str, RedisConfig.host),
            port=self._value("redis", "port", int, RedisConfig.port),
            password=self._value("redis", "password", str, RedisConfig.password),
            connect_timeout=self._value("redis", "connect_timeout", float, RedisConfig.connect_timeout),
            retry_delay=self._value("redis", "retry_delay", float, RedisConfig.retry_delay),
        )
        shutdown = ShutdownConfig(
            drain_timeout=self._value("shutdown", "drain_timeout", float, ShutdownConfig.drain_timeout),
            handler_timeout=self._value("shutdown", "handler_timeout", float, ShutdownConfig.handler_timeout),
        )
        return AppConfig(
            server=server,
            redis=redis,
            shutdown=shutdown,
            log_level=self._value("logging", "level", _parse_log_level, LogLevel.INFO),
        )


def _parse_log_level(raw) -> LogLevel:
    name = str(raw).upper()
    if name == "WARNING":
        name = "WARN"
    try:
        return LogLevel[name]
    except KeyError:
        raise ValueError(f"Unknown log level: {raw}")
