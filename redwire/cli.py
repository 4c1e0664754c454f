"""CLI entry point for redwire."""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from redwire.client import Redis
from redwire.config.loader import initialize_config, load_config
from redwire.config.schema import AppConfig
from redwire.core.doctor import run_diagnostics
from redwire.core.logging import configure_logging
from redwire.errors import RedisCommandError, RedwireError
from redwire.protocol.decoders import parse_info
from redwire.protocol.reply import to_python


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="redwire")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create starter config")
    init_parser.add_argument("--config", type=Path, default=Path("./config/redwire.yml"))
    init_parser.add_argument("--force", action="store_true")

    def _connection_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--config", type=Path, default=None, help="Config file (default: $REDWIRE_CONFIG or bundled)")
        sub.add_argument("--url", type=str, default=None, help="Override connection.url")
        sub.add_argument("--timeout", type=float, default=None, help="Override command timeout in seconds")

    exec_parser = subparsers.add_parser("exec", help="Run one command and print the reply tree")
    _connection_args(exec_parser)
    exec_parser.add_argument("tokens", nargs="+", help="Command name followed by its arguments")

    info_parser = subparsers.add_parser("info", help="Show parsed INFO output")
    _connection_args(info_parser)
    info_parser.add_argument("--section", type=str, default=None)
    info_parser.add_argument("--raw", action="store_true", help="Print the INFO text unparsed")

    time_parser = subparsers.add_parser("time", help="Show server time")
    _connection_args(time_parser)

    clients_parser = subparsers.add_parser("clients", help="Show CLIENT LIST as attribute maps")
    _connection_args(clients_parser)

    doctor_parser = subparsers.add_parser("doctor", help="Validate config and optionally PING the server")
    _connection_args(doctor_parser)
    doctor_parser.add_argument("--probe", action="store_true", help="Connect and PING the configured server")

    return parser


def _load(args: argparse.Namespace) -> AppConfig:
    overrides: dict[str, Any] = {}
    if args.url:
        overrides.setdefault("connection", {})["url"] = args.url
    if args.timeout is not None:
        overrides.setdefault("connection", {})["command_timeout_seconds"] = args.timeout
    config = load_config(args.config, overrides=overrides or None)
    configure_logging(config.logging)
    return config


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def _with_client(config: AppConfig, action: Callable[[Redis], Awaitable[Any]]) -> Any:
    async with Redis.from_app_config(config) as client:
        return await action(client)


def _run(config: AppConfig, action: Callable[[Redis], Awaitable[Any]]) -> int:
    try:
        result = asyncio.run(_with_client(config, action))
    except RedisCommandError as exc:
        _print_json({"error": exc.message, "kind": exc.kind})
        return 1
    except RedwireError as exc:
        _print_json({"error": str(exc), "type": type(exc).__name__})
        return 2
    _print_json(result)
    return 0


def cmd_init(path: Path, force: bool) -> int:
    try:
        written = initialize_config(path, force=force)
    except FileExistsError as exc:
        _print_json({"error": str(exc)})
        return 1
    _print_json({"config": str(written)})
    return 0


def cmd_exec(config: AppConfig, tokens: Sequence[str]) -> int:
    async def _action(client: Redis) -> Any:
        reply = await client.executor.execute(tokens[0], *tokens[1:])
        return to_python(reply)

    return _run(config, _action)


def cmd_info(config: AppConfig, *, section: str | None, raw: bool) -> int:
    async def _action(client: Redis) -> Any:
        text = await client.info(section) or ""
        return text if raw else parse_info(text)

    return _run(config, _action)


def cmd_time(config: AppConfig) -> int:
    async def _action(client: Redis) -> Any:
        server_time = await client.time()
        return {
            "seconds": server_time.seconds,
            "microseconds": server_time.microseconds,
            "iso": server_time.as_datetime().isoformat(),
        }

    return _run(config, _action)


def cmd_clients(config: AppConfig) -> int:
    async def _action(client: Redis) -> Any:
        return await client.client_list()

    return _run(config, _action)


def cmd_doctor(config: AppConfig, *, probe: bool) -> int:
    probe_result: tuple[bool, str] | None = None
    if probe:
        try:
            pong = asyncio.run(_with_client(config, lambda client: client.ping()))
            probe_result = (pong == "PONG", f"server replied {pong!r}")
        except RedwireError as exc:
            probe_result = (False, f"{type(exc).__name__}: {exc}")
    report = run_diagnostics(config, probe=probe_result)
    _print_json(report)
    return 0 if report["ok"] else 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "init":
        return cmd_init(args.config, args.force)

    try:
        config = _load(args)
    except (FileNotFoundError, ValueError) as exc:
        _print_json({"error": str(exc)})
        return 2

    if args.command == "exec":
        return cmd_exec(config, args.tokens)
    if args.command == "info":
        return cmd_info(config, section=args.section, raw=args.raw)
    if args.command == "time":
        return cmd_time(config)
    if args.command == "clients":
        return cmd_clients(config)
    if args.command == "doctor":
        return cmd_doctor(config, probe=args.probe)
    parser.error(f"unknown command {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
