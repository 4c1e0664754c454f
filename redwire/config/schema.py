"""Dataclasses for top-level application config."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote, urlparse, urlunparse


DEFAULT_REDIS_PORT = 6379
DEFAULT_MAX_BULK_BYTES = 512 * 1024 * 1024


@dataclass(slots=True)
class ConnectionConfig:
    url: str = "redis://127.0.0.1:6379/0"
    connect_timeout_seconds: float = 2.0
    command_timeout_seconds: float | None = 5.0
    client_name: str = ""
    max_bulk_bytes: int = DEFAULT_MAX_BULK_BYTES


@dataclass(slots=True)
class PoolConfig:
    max_connections: int = 8


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    fmt: str = "ecs_json"
    sink: str = "stdout"
    file_path: str | None = None
    service_name: str = "redwire"


@dataclass(slots=True)
class AppConfig:
    environment: str = "development"
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    pool: PoolConfig = field(default_factory=PoolConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass(frozen=True, slots=True)
class RedisEndpoint:
    host: str
    port: int = DEFAULT_REDIS_PORT
    db: int = 0
    username: str | None = None
    password: str | None = None

    @property
    def address(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"


VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
VALID_LOG_FORMATS = {"json", "ecs_json"}
VALID_LOG_SINKS = {"stdout", "file"}
VALID_URL_SCHEMES = {"redis"}


def parse_redis_url(url: str) -> RedisEndpoint:
    parsed = urlparse(str(url).strip())
    if parsed.scheme == "rediss":
        raise ValueError("TLS connections (rediss://) are not supported")
    if parsed.scheme not in VALID_URL_SCHEMES:
        raise ValueError(f"unsupported redis url scheme '{parsed.scheme}'")
    if not parsed.hostname:
        raise ValueError("redis url requires a host")
    try:
        port = parsed.port or DEFAULT_REDIS_PORT
    except ValueError as exc:
        raise ValueError(f"invalid redis url port: {exc}") from exc
    db_text = parsed.path.lstrip("/")
    if db_text:
        if not db_text.isdigit():
            raise ValueError(f"invalid redis database index '{db_text}'")
        db = int(db_text)
    else:
        db = 0
    username = unquote(parsed.username) if parsed.username else None
    password = unquote(parsed.password) if parsed.password else None
    return RedisEndpoint(
        host=parsed.hostname,
        port=port,
        db=db,
        username=username or None,
        password=password or None,
    )


def redis_url_has_credentials(redis_url: str) -> bool:
    parsed = urlparse(str(redis_url).strip())
    password = parsed.password or ""
    return bool(password.strip())


def redact_redis_url(redis_url: str) -> str:
    raw = str(redis_url).strip()
    parsed = urlparse(raw)
    if not parsed.password:
        return raw
    hostname = parsed.hostname or ""
    if not hostname:
        return raw
    if ":" in hostname and not hostname.startswith("["):
        hostname = f"[{hostname}]"
    username = parsed.username or ""
    userinfo = f"{username}:***@" if username else ":***@"
    netloc = f"{userinfo}{hostname}"
    if parsed.port is not None:
        netloc = f"{netloc}:{parsed.port}"
    return urlunparse((parsed.scheme, netloc, parsed.path, parsed.params, parsed.query, parsed.fragment))


def _parse_optional_timeout(raw: Any, *, field_name: str) -> float | None:
    # null disables the timeout
    if raw is None:
        return None
    value = float(raw)
    if value <= 0:
        raise ValueError(f"{field_name} must be greater than zero")
    return value


def parse_config(data: dict[str, Any]) -> AppConfig:
    environment = str(data.get("environment", "development"))

    connection_raw = data.get("connection", {})
    if not isinstance(connection_raw, dict):
        raise ValueError("'connection' must be an object")
    url = str(connection_raw.get("url", "redis://127.0.0.1:6379/0")).strip()
    parse_redis_url(url)
    connect_timeout = float(connection_raw.get("connect_timeout_seconds", 2.0))
    if connect_timeout <= 0:
        raise ValueError("connection connect_timeout_seconds must be greater than zero")
    command_timeout = _parse_optional_timeout(
        connection_raw.get("command_timeout_seconds", 5.0),
        field_name="connection command_timeout_seconds",
    )
    max_bulk_bytes = int(connection_raw.get("max_bulk_bytes", DEFAULT_MAX_BULK_BYTES))
    if max_bulk_bytes <= 0:
        raise ValueError("connection max_bulk_bytes must be greater than zero")
    client_name = str(connection_raw.get("client_name", "") or "").strip()
    if " " in client_name:
        raise ValueError("connection client_name must not include spaces")
    connection = ConnectionConfig(
        url=url,
        connect_timeout_seconds=connect_timeout,
        command_timeout_seconds=command_timeout,
        client_name=client_name,
        max_bulk_bytes=max_bulk_bytes,
    )

    pool_raw = data.get("pool", {})
    if not isinstance(pool_raw, dict):
        raise ValueError("'pool' must be an object")
    max_connections = int(pool_raw.get("max_connections", 8))
    if max_connections < 1:
        raise ValueError("pool max_connections must be at least 1")
    pool = PoolConfig(max_connections=max_connections)

    logging_raw = data.get("logging", {})
    if not isinstance(logging_raw, dict):
        raise ValueError("'logging' must be an object")
    level = str(logging_raw.get("level", "INFO")).upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"invalid log level '{level}'")
    log_format = str(logging_raw.get("format", "ecs_json"))
    if log_format not in VALID_LOG_FORMATS:
        raise ValueError(f"invalid log format '{log_format}'")
    sink = str(logging_raw.get("sink", "stdout"))
    if sink not in VALID_LOG_SINKS:
        raise ValueError(f"invalid log sink '{sink}'")
    logging_config = LoggingConfig(
        level=level,
        fmt=log_format,
        sink=sink,
        file_path=logging_raw.get("file_path"),
        service_name=str(logging_raw.get("service_name", "redwire")),
    )

    return AppConfig(
        environment=environment,
        connection=connection,
        pool=pool,
        logging=logging_config,
    )
