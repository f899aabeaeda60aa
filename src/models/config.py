"""
Configuration models

Immutable settings assembled by ConfigManager from config.yaml and
environment overrides. Default values defined here are the single source
of truth used when both the file and the environment are silent.
"""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import LogLevel


@dataclass(frozen=True)
class ServerConfig:
    """HTTP listener"""
    host: str = "0.0.0.0"
    port: int = 3000
    version: str = "1.0.0"


@dataclass(frozen=True)
class RedisConfig:
    """Backing store connection + retry behaviour"""
    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    connect_timeout: float = 2.0   # Per-attempt bound (seconds)
    retry_delay: float = 1.0       # Fixed delay between reconnect attempts


@dataclass(frozen=True)
class ShutdownConfig:
    """Graceful shutdown bounds"""
    drain_timeout: float = 10.0    # Signal -> forced exit
    handler_timeout: float = 8.0   # Per shutdown handler


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)
    log_level: LogLevel = LogLevel.INFO
