"""Operational diagnostics for config and server reachability."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from redwire.config.schema import AppConfig, parse_redis_url, redact_redis_url, redis_url_has_credentials


KNOWN_DEFAULT_PASSWORDS = {
    "redwire-dev-password",
    "replace-with-strong-redis-password",
    "unit-test-redis-password",
}


@dataclass(slots=True)
class DoctorCheck:
    name: str
    ok: bool
    detail: str


def run_diagnostics(config: AppConfig, *, probe: tuple[bool, str] | None = None) -> dict[str, Any]:
    """Evaluate the config; ``probe`` is the outcome of a live PING, if one ran."""
    checks: list[DoctorCheck] = []

    try:
        endpoint = parse_redis_url(config.connection.url)
        checks.append(DoctorCheck(name="redis_url", ok=True, detail=f"target {endpoint.address} db={endpoint.db}"))
    except ValueError as exc:
        checks.append(DoctorCheck(name="redis_url", ok=False, detail=str(exc)))

    has_credentials = redis_url_has_credentials(config.connection.url)
    checks.append(
        DoctorCheck(
            name="redis_auth",
            ok=has_credentials,
            detail="AUTH credentials configured" if has_credentials else "redis url carries no password",
        )
    )

    ok, detail = _default_credentials_check(config)
    checks.append(DoctorCheck(name="default_credentials", ok=ok, detail=detail))

    ok, detail = _timeout_check(config)
    checks.append(DoctorCheck(name="timeouts", ok=ok, detail=detail))

    if probe is not None:
        checks.append(DoctorCheck(name="ping", ok=probe[0], detail=probe[1]))

    return {
        "ok": all(check.ok for check in checks),
        "redis_url": redact_redis_url(config.connection.url),
        "checks": [{"name": check.name, "ok": check.ok, "detail": check.detail} for check in checks],
    }


def _default_credentials_check(config: AppConfig) -> tuple[bool, str]:
    environment = str(getattr(config, "environment", "")).strip().lower()
    if environment == "development":
        return (True, "default credential check skipped for development profile")
    try:
        password = parse_redis_url(config.connection.url).password or ""
    except ValueError:
        return (False, "redis url could not be parsed")
    if password.strip() in KNOWN_DEFAULT_PASSWORDS:
        return (False, "connection.url uses a known default credential")
    return (True, "no known default credentials detected")


def _timeout_check(config: AppConfig) -> tuple[bool, str]:
    command_timeout = config.connection.command_timeout_seconds
    if command_timeout is None:
        if config.environment.strip().lower() == "development":
            return (True, "command timeout disabled (allowed in development)")
        return (False, "command_timeout_seconds is disabled; a stalled server would block callers forever")
    if command_timeout < config.connection.connect_timeout_seconds:
        return (
            True,
            f"command timeout {command_timeout:g}s is shorter than connect timeout "
            f"{config.connection.connect_timeout_seconds:g}s; first calls may time out while connecting",
        )
    return (True, f"connect={config.connection.connect_timeout_seconds:g}s command={command_timeout:g}s")
