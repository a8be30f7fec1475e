from __future__ import annotations

import json
from pathlib import Path

import pytest

import abi_scaffold.core.config as config

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.delenv("ABI_SCAFFOLD_CONFIG_PATH", raising=False)
    monkeypatch.delenv("ABI_SCAFFOLD_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_resolve_config_path_defaults_to_repo_root(clean_env: Path) -> None:
    assert config.resolve_config_path() == REPO_ROOT / "config.json"


def test_resolve_config_path_prefers_project_of_cwd(clean_env: Path) -> None:
    (clean_env / "pyproject.toml").write_text("")
    assert config.resolve_config_path() == clean_env.resolve() / "config.json"


def test_resolve_config_path_env_relative_is_repo_relative(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("ABI_SCAFFOLD_CONFIG", "configs/dev.json")
    assert config.resolve_config_path() == REPO_ROOT / "configs" / "dev.json"


def test_resolve_config_path_env_absolute(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = clean_env / "custom.json"
    monkeypatch.setenv("ABI_SCAFFOLD_CONFIG_PATH", str(target))
    assert config.resolve_config_path() == target


def test_load_config_json_missing_file(clean_env: Path) -> None:
    missing = clean_env / "nope.json"
    assert config.load_config_json(missing) == {}
    with pytest.raises(FileNotFoundError):
        config.load_config_json(missing, require_exists=True)


def test_load_config_json_rejects_bad_documents(clean_env: Path) -> None:
    broken = clean_env / "broken.json"
    broken.write_text("{")
    with pytest.raises(ValueError, match="not valid JSON"):
        config.load_config_json(broken)

    listed = clean_env / "list.json"
    listed.write_text("[]")
    with pytest.raises(ValueError, match="JSON object at the top level"):
        config.load_config_json(listed)


def test_load_config_updates_scaffold_settings(clean_env: Path) -> None:
    assert config.get_mapping_dir() == "src/mappings"
    assert config.get_abi_dir() == "abis"
    assert config.get_handler_build_path() == "./dist/index.js"
    assert config.get_index_file() == "src/index.ts"

    path = clean_env / "config.json"
    path.write_text(
        json.dumps(
            {
                "scaffold": {
                    "mapping_dir": "src/handlers",
                    "abi_dir": "  contracts  ",
                    "index_file": "",
                }
            }
        )
    )
    config.load_config(path)

    assert config.get_mapping_dir() == "src/handlers"
    assert config.get_abi_dir() == "contracts"
    assert config.get_index_file() == "src/index.ts"


def test_non_mapping_scaffold_section_falls_back_to_defaults() -> None:
    config.set_config({"scaffold": ["src/handlers"]})
    assert config.get_mapping_dir() == "src/mappings"
