"""CLI command registration and handlers for Croquette."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from croquette.contracts.error import BadInputError, ErrorCode, Exit, coerce_code, describe
from croquette.core.hashing import DEFAULT_CAPACITY, bucket_index, hash_code, normalize_key


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    run_script: Callable[..., Dict[str, Any]]
    logger: logging.Logger
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "run-script",
        "Replay an op,key,value CSV scenario against a fresh table.",
        lambda parser: _configure_run_script(parser, ctx),
    )
    _register(
        "hash",
        "Show the hash code and bucket index for a key.",
        lambda parser: _configure_hash(parser, ctx),
    )
    _register(
        "describe-error",
        "Print the description of an error code.",
        lambda parser: _configure_describe_error(parser, ctx),
    )
    return handlers


def _configure_run_script(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("script", help="CSV file with header op,key,value")
    parser.add_argument(
        "--trace", action="store_true", help="Append size/capacity after every op"
    )

    def handler(args: argparse.Namespace) -> int:
        result = ctx.run_script(args.script, trace=args.trace)
        data = {
            "script": args.script,
            "summary": result["summary"],
            "results": result["results"],
        }
        ctx.emit_success("run-script", text=result["text"], data=data)
        return int(Exit.OK)

    return handler


def _configure_hash(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("key")
    parser.add_argument(
        "--capacity",
        type=int,
        default=DEFAULT_CAPACITY,
        help="Bucket count used for the index (default: %(default)s)",
    )

    def handler(args: argparse.Namespace) -> int:
        key = normalize_key(args.key)
        code = hash_code(key)
        index = bucket_index(key, args.capacity)
        ctx.logger.debug("hash(%r) = %d, index %d of %d", key, code, index, args.capacity)
        data = {"key": key, "hash": code, "capacity": args.capacity, "index": index}
        ctx.emit_success("hash", text=f"hash={code} index={index}", data=data)
        return int(Exit.OK)

    return handler


def _configure_describe_error(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("code", help="Numeric code or name, e.g. 4 or INVALID_KEY")

    def handler(args: argparse.Namespace) -> int:
        resolved = _parse_code(args.code)
        text = f"[Croquette Error {int(resolved):2d}] {describe(resolved)}"
        data = {"code": int(resolved), "name": resolved.name, "description": describe(resolved)}
        ctx.emit_success("describe-error", text=text, data=data)
        return int(Exit.OK)

    return handler


def _parse_code(raw: str) -> ErrorCode:
    text = raw.strip()
    if text.lstrip("-").isdigit():
        return coerce_code(int(text))
    try:
        return ErrorCode[text.upper().replace("-", "_")]
    except KeyError as exc:
        raise BadInputError(
            f"Unknown error code {raw!r}", hint="Use a number or a name such as INVALID_KEY"
        ) from exc


__all__ = ["CLIContext", "register_subcommands"]
