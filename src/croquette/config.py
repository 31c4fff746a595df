"""Typed configuration loader for Croquette."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .core.hashing import DEFAULT_CAPACITY

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}


def _parse_bool(raw: Any, label: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in _TRUE_WORDS:
            return True
        if normalized in _FALSE_WORDS:
            return False
    raise BadInputError(f"{label} must be boolean")


@dataclass
class TablePolicy:
    initial_capacity: int = 0
    owns_values: bool = False

    def validate(self) -> None:
        if isinstance(self.initial_capacity, bool) or not isinstance(self.initial_capacity, int):
            raise BadInputError("table.initial_capacity must be an integer")
        if not isinstance(self.owns_values, bool):
            raise BadInputError("table.owns_values must be boolean")

    def effective_capacity(self) -> int:
        return self.initial_capacity if self.initial_capacity > 0 else DEFAULT_CAPACITY


@dataclass
class AppConfig:
    table: TablePolicy = field(default_factory=TablePolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        table_data = data.get("table", {})
        if not isinstance(table_data, dict):
            raise BadInputError("[table] section must be a table")
        unknown = set(table_data) - {"initial_capacity", "owns_values"}
        if unknown:
            raise BadInputError(f"Unknown [table] keys: {', '.join(sorted(unknown))}")
        kwargs: dict[str, Any] = {}
        if "initial_capacity" in table_data:
            kwargs["initial_capacity"] = table_data["initial_capacity"]
        if "owns_values" in table_data:
            kwargs["owns_values"] = _parse_bool(table_data["owns_values"], "table.owns_values")
        return cls(table=TablePolicy(**kwargs))

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        mapping: dict[str, tuple[str, Callable[[str], Any]]] = {
            "CROQUETTE_INITIAL_CAPACITY": ("initial_capacity", int),
            "CROQUETTE_OWNS_VALUES": (
                "owns_values",
                lambda raw: _parse_bool(raw, "CROQUETTE_OWNS_VALUES"),
            ),
        }
        for key, (attr, caster) in mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except (ValueError, BadInputError) as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.table, attr, value)

    def validate(self) -> None:
        self.table.validate()


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)
