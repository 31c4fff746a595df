from __future__ import annotations

from pathlib import Path

import pytest

from croquette.config import AppConfig, load_app_config
from croquette.contracts.error import BadInputError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CROQUETTE_INITIAL_CAPACITY", raising=False)
    monkeypatch.delenv("CROQUETTE_OWNS_VALUES", raising=False)


def test_default_config_validates() -> None:
    cfg = load_app_config(None)
    assert cfg.table.initial_capacity == 0
    assert cfg.table.owns_values is False
    assert cfg.table.effective_capacity() == 11


def test_load_from_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.toml"
    cfg_path.write_text(
        """
[table]
initial_capacity = 1
owns_values = true
""",
        encoding="utf-8",
    )
    cfg = load_app_config(str(cfg_path))
    assert cfg.table.initial_capacity == 1
    assert cfg.table.owns_values is True
    assert cfg.table.effective_capacity() == 1

    # env override takes precedence
    monkeypatch.setenv("CROQUETTE_INITIAL_CAPACITY", "32")
    monkeypatch.setenv("CROQUETTE_OWNS_VALUES", "off")
    cfg_env = AppConfig.load(cfg_path)
    assert cfg_env.table.initial_capacity == 32
    assert cfg_env.table.owns_values is False


def test_string_booleans_are_accepted(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.toml"
    cfg_path.write_text('[table]\nowns_values = "yes"\n', encoding="utf-8")
    assert load_app_config(str(cfg_path)).table.owns_values is True


@pytest.mark.parametrize(
    "body",
    [
        "[table]\ninitial_capacity = 1.5\n",
        '[table]\ninitial_capacity = "big"\n',
        '[table]\nowns_values = "maybe"\n',
        "[table]\nbucket_count = 4\n",
        "table = 3\n",
        "[table\n",
    ],
)
def test_invalid_values_raise(tmp_path: Path, body: str) -> None:
    bad_path = tmp_path / "bad.toml"
    bad_path.write_text(body, encoding="utf-8")
    with pytest.raises(BadInputError):
        load_app_config(str(bad_path))


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(BadInputError):
        load_app_config(str(tmp_path / "absent.toml"))


def test_invalid_env_override_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CROQUETTE_INITIAL_CAPACITY", "eleven")
    with pytest.raises(BadInputError):
        load_app_config(None)
    monkeypatch.setenv("CROQUETTE_INITIAL_CAPACITY", "4")
    monkeypatch.setenv("CROQUETTE_OWNS_VALUES", "sometimes")
    with pytest.raises(BadInputError):
        load_app_config(None)
