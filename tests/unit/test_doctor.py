from redwire.config.schema import parse_config
from redwire.core.doctor import run_diagnostics


def _check(report: dict, name: str) -> dict:
    return next(item for item in report["checks"] if item["name"] == name)


def test_run_diagnostics_passes_for_development_defaults() -> None:
    config = parse_config({"connection": {"url": "redis://:unit-test-redis-password@127.0.0.1:6379/0"}})
    report = run_diagnostics(config)
    assert report["ok"] is True
    assert report["redis_url"] == "redis://:***@127.0.0.1:6379/0"
    assert {item["name"] for item in report["checks"]} == {
        "redis_url",
        "redis_auth",
        "default_credentials",
        "timeouts",
    }


def test_run_diagnostics_fails_without_credentials() -> None:
    config = parse_config({"connection": {"url": "redis://cache:6379/0"}})
    report = run_diagnostics(config)
    assert report["ok"] is False
    assert _check(report, "redis_auth")["ok"] is False


def test_known_default_password_fails_outside_development() -> None:
    config = parse_config(
        {
            "environment": "production",
            "connection": {"url": "redis://:replace-with-strong-redis-password@cache:6379/0"},
        }
    )
    report = run_diagnostics(config)
    assert report["ok"] is False
    assert _check(report, "default_credentials")["ok"] is False


def test_disabled_command_timeout_fails_outside_development() -> None:
    config = parse_config(
        {
            "environment": "production",
            "connection": {"url": "redis://:Str0ng-secret@cache:6379/0", "command_timeout_seconds": None},
        }
    )
    report = run_diagnostics(config)
    assert _check(report, "timeouts")["ok"] is False

    config.environment = "development"
    assert _check(run_diagnostics(config), "timeouts")["ok"] is True


def test_probe_result_is_reported() -> None:
    config = parse_config({"connection": {"url": "redis://:Str0ng-secret@cache:6379/0"}})
    report = run_diagnostics(config, probe=(False, "TransportError: connect to cache:6379 failed"))
    assert report["ok"] is False
    assert _check(report, "ping")["detail"].startswith("TransportError")
