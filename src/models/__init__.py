"""
Models package - Data models for the Task API
"""

from .enums import (
    ConnectionState,
    ShutdownPhase,
    HandlerPhase,
    LivenessStatus,
    ReadinessStatus,
    LogLevel,
    LogCategory,
)
from .config import AppConfig, RedisConfig, ServerConfig, ShutdownConfig

__all__ = [
    'ConnectionState',
    'ShutdownPhase',
    'HandlerPhase',
    'LivenessStatus',
    'ReadinessStatus',
    'LogLevel',
    'LogCategory',
    'AppConfig',
    'RedisConfig',
    'ServerConfig',
    'ShutdownConfig',
]
