"""
app.py

Command line front end for Croquette:
- run-script: replay a CSV scenario against a fresh table built from config
- hash: show the hash code and bucket index of a key
- describe-error: translate an error code into its description

Logging goes to stderr (text or JSON) with an optional rotating log file.
Success output goes to stdout as text or, with --json, one JSON object.
"""

from __future__ import annotations

import argparse
import contextlib
import csv
import json
import logging
import os
import sys
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from croquette.cli.commands import CLIContext, register_subcommands
from croquette.config import AppConfig, load_app_config
from croquette.contracts.error import BadInputError, IOErrorEnvelope, PolicyError, guard_cli
from croquette.core.table import Croquette

# --------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------
logger = logging.getLogger("croquette")
logger.setLevel(logging.INFO)
logger.propagate = False

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_LOG_MAX_BYTES = 5_000_000
DEFAULT_LOG_BACKUP_COUNT = 5
DEFAULT_SCRIPT_MAX_ROWS = 1_000_000

SCRIPT_OPS = (
    "put",
    "put-if-absent",
    "get",
    "get-or-default",
    "contains",
    "contains-value",
    "del",
    "clear",
    "size",
    "capacity",
    "keys",
)
_VALUE_OPS = {"put", "put-if-absent", "get-or-default", "contains-value"}


class JsonFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, DEFAULT_LOG_DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    use_json: bool = False,
    log_file: str | None = None,
    *,
    level: int = logging.INFO,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> None:
    """Configure console (and optional rotating file) logging."""

    formatter: logging.Formatter
    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT)

    for handler in list(logger.handlers):
        with contextlib.suppress(Exception):
            handler.close()
        logger.removeHandler(handler)

    logger.setLevel(level)
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file:
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


configure_logging()

APP_CONFIG: AppConfig = AppConfig()
OUTPUT_JSON: bool = False


def set_app_config(cfg: AppConfig) -> None:
    global APP_CONFIG
    APP_CONFIG = cfg


def emit_success(
    command: str, *, text: str | None = None, data: dict[str, Any] | None = None
) -> None:
    if OUTPUT_JSON:
        payload: dict[str, Any] = {"ok": True, "command": command}
        if data:
            payload.update(data)
        if text is not None and "result" not in payload:
            payload["result"] = text
        print(json.dumps(payload, ensure_ascii=False))
    else:
        if text is not None:
            print(text)


# --------------------------------------------------------------------
# Table construction / op runner
# --------------------------------------------------------------------
class ReleaseLog:
    """Release capability for CLI-owned string values; remembers what it released."""

    def __init__(self) -> None:
        self.released: list[str] = []

    def __call__(self, value: str) -> None:
        self.released.append(value)
        logger.debug("Released value %r", value)


def build_table(release: ReleaseLog | None = None) -> Croquette[str]:
    policy = APP_CONFIG.table
    release_fn = None
    if policy.owns_values:
        release_fn = release or ReleaseLog()
    return Croquette.from_callbacks(
        policy.initial_capacity,
        policy.owns_values,
        release_fn,
        lambda a, b: a == b,
    )


def run_op(table: Croquette[str], op: str, key: str | None, value: str | None) -> str:
    if op in _VALUE_OPS and value is None:
        raise BadInputError(f"{op} operations require a value")

    if op == "put":
        table.put(key, value)  # type: ignore[arg-type]
        return "OK"
    if op == "put-if-absent":
        existing = table.put_if_absent(key, value)  # type: ignore[arg-type]
        return "" if existing is None else existing
    if op == "get":
        found = table.get(key)  # type: ignore[arg-type]
        return "" if found is None else found
    if op == "get-or-default":
        return table.get_or_default(key, value)  # type: ignore[arg-type]
    if op == "contains":
        return "1" if table.contains_key(key) else "0"  # type: ignore[arg-type]
    if op == "contains-value":
        return "1" if table.contains_value(value) else "0"  # type: ignore[arg-type]
    if op == "del":
        table.remove(key)  # type: ignore[arg-type]
        return "OK"
    if op == "clear":
        table.clear()
        return "OK"
    if op == "size":
        return str(table.size())
    if op == "capacity":
        return str(table.capacity())
    if op == "keys":
        return "\n".join(f"[{idx:2d}] {k}" for idx, k in table.dump_keys())
    raise BadInputError(f"unknown op: {op}")


def load_script(
    path: str, max_rows: int = DEFAULT_SCRIPT_MAX_ROWS
) -> list[tuple[str, str | None, str | None]]:
    """Read and validate an ``op,key,value`` CSV scenario."""

    def rows() -> Iterator[tuple[str, str | None, str | None]]:
        try:
            fh = open(path, newline="", encoding="utf-8")
        except FileNotFoundError:
            raise
        except OSError as exc:
            raise IOErrorEnvelope(f"{path}: cannot read script ({exc.strerror})") from exc
        with fh:
            reader = csv.DictReader(fh)
            if reader.fieldnames is None or "op" not in reader.fieldnames:
                raise BadInputError(
                    f"{path}: missing header", hint="Expected columns: op,key,value"
                )
            for line_no, row in enumerate(reader, start=2):
                op = (row.get("op") or "").strip().lower()
                if op not in SCRIPT_OPS:
                    raise BadInputError(
                        f"{path}:{line_no}: unknown op {op!r}",
                        hint=f"Supported ops: {', '.join(SCRIPT_OPS)}",
                    )
                key = row.get("key") or None
                value = row.get("value")
                if value == "" and op not in _VALUE_OPS:
                    value = None
                yield op, key, value

    ops: list[tuple[str, str | None, str | None]] = []
    for item in rows():
        ops.append(item)
        if len(ops) > max_rows:
            raise BadInputError(f"{path}: more than {max_rows} rows")
    return ops


def run_script(path: str, *, trace: bool = False) -> dict[str, Any]:
    ops = load_script(path)
    release = ReleaseLog()
    table = build_table(release)
    lines: list[str] = []
    results: list[dict[str, Any]] = []
    try:
        for op, key, value in ops:
            out = run_op(table, op, key, value)
            size, capacity = table.size(), table.capacity()
            record: dict[str, Any] = {
                "op": op,
                "key": key,
                "result": out,
                "size": size,
                "capacity": capacity,
            }
            results.append(record)
            line = out
            if trace:
                line = f"{out}\t{size}/{capacity}" if out else f"{size}/{capacity}"
            lines.append(line)
        summary = {
            "ops": len(ops),
            "size": table.size(),
            "capacity": table.capacity(),
            "released": len(release.released),
        }
    finally:
        table.destroy()
    logger.info("Replayed %d ops from %s", len(ops), path)
    return {"text": "\n".join(lines), "results": results, "summary": summary}


# --------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------
def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        description="Croquette string-keyed hash table: scenario replay and diagnostics."
    )
    p.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (rotates at 5MB, keeps 5 backups by default)",
    )
    p.add_argument(
        "--log-max-bytes",
        type=int,
        default=DEFAULT_LOG_MAX_BYTES,
        help="Max bytes per log file before rotation (default: %(default)s)",
    )
    p.add_argument(
        "--log-backup-count",
        type=int,
        default=DEFAULT_LOG_BACKUP_COUNT,
        help="Number of rotated log files to keep (default: %(default)s)",
    )
    p.add_argument("--verbose", action="store_true", help="Log rehash events (DEBUG level)")
    p.add_argument(
        "--json", action="store_true", help="Emit machine-readable success output to stdout"
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to TOML config file (overrides defaults; env overrides still apply)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    ctx = CLIContext(
        emit_success=emit_success,
        run_script=run_script,
        logger=logger,
        guard=guard_cli,
    )
    handlers = register_subcommands(sub, ctx)

    args = p.parse_args(argv)

    global OUTPUT_JSON
    OUTPUT_JSON = bool(args.json)

    configure_logging(
        args.log_json,
        args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
        max_bytes=args.log_max_bytes,
        backup_count=args.log_backup_count,
    )

    cfg_path = args.config or os.getenv("CROQUETTE_CONFIG")
    cfg = guard_cli(load_app_config)(cfg_path)
    set_app_config(cfg)
    if cfg_path:
        logger.info("Loaded config from %s", Path(cfg_path))

    handler = handlers.get(args.cmd)
    if handler is None:
        raise PolicyError(f"Unknown command {args.cmd}")
    return handler(args)


def console_main() -> None:
    """Entry point for console_scripts."""

    try:
        raise SystemExit(main(sys.argv[1:]))
    except SystemExit:
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("Fatal error: %s", e)
        raise SystemExit(2) from e


if __name__ == "__main__":
    console_main()
