import copy
import shutil
from pathlib import Path

import pytest

import abi_scaffold.core.config as scaffold_config

FIXTURES_DIR = Path(__file__).parent / "tests" / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def erc721_abi_path() -> Path:
    return FIXTURES_DIR / "erc721.json"


@pytest.fixture(autouse=True)
def restore_global_config():
    original = copy.deepcopy(scaffold_config.CONFIG)
    scaffold_config.set_config({})
    yield
    scaffold_config.set_config(original)


def _make_project(tmp_path: Path, manifest_name: str) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    shutil.copyfile(FIXTURES_DIR / manifest_name, root / manifest_name)
    (root / "src").mkdir()
    (root / "src" / "index.ts").write_text('export * from "./mappings/mappingHandlers";')
    return root


@pytest.fixture
def yaml_project(tmp_path: Path) -> Path:
    return _make_project(tmp_path, "project.yaml")


@pytest.fixture
def ts_project(tmp_path: Path) -> Path:
    return _make_project(tmp_path, "project.ts")
