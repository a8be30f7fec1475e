import json
import os
from pathlib import Path
from typing import Any

from abi_scaffold.core.constants.manifest import (
    DEFAULT_ABI_DIR,
    DEFAULT_HANDLER_BUILD_PATH,
    DEFAULT_INDEX_FILE,
    ROOT_MAPPING_DIR,
)

_CONFIG_ENV_KEYS = ("ABI_SCAFFOLD_CONFIG_PATH", "ABI_SCAFFOLD_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        data = json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Config file is not valid JSON: {cfg_path}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{cfg_path} must be a JSON object at the top level.")
    return data


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def _scaffold_setting(key: str, default: str) -> str:
    scaffold = CONFIG.get("scaffold", {})
    value = scaffold.get(key) if isinstance(scaffold, dict) else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def get_mapping_dir() -> str:
    return _scaffold_setting("mapping_dir", ROOT_MAPPING_DIR)


def get_abi_dir() -> str:
    return _scaffold_setting("abi_dir", DEFAULT_ABI_DIR)


def get_handler_build_path() -> str:
    return _scaffold_setting("handler_build_path", DEFAULT_HANDLER_BUILD_PATH)


def get_index_file() -> str:
    return _scaffold_setting("index_file", DEFAULT_INDEX_FILE)
