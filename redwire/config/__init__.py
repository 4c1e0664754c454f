"""Configuration schema and YAML loading."""

from .loader import initialize_config, load_config, load_config_text
from .schema import AppConfig, ConnectionConfig, LoggingConfig, PoolConfig, RedisEndpoint, parse_config, parse_redis_url

__all__ = [
    "AppConfig",
    "ConnectionConfig",
    "LoggingConfig",
    "PoolConfig",
    "RedisEndpoint",
    "initialize_config",
    "load_config",
    "load_config_text",
    "parse_config",
    "parse_redis_url",
]
