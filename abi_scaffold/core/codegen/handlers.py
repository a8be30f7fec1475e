"""Handler stub scaffolding for an imported ABI."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from abi_scaffold.core.config import get_abi_dir, get_index_file, get_mapping_dir
from abi_scaffold.core.errors import HandlerExistsError
from abi_scaffold.core.manifest.datasource import HandlerNameRegistry, upper_first
from abi_scaffold.core.models import SelectedMethod

HANDLERS_TS = """// Auto-generated handler stubs for {abi_name}.

{imports}{functions}"""

HANDLER_IMPORT = 'import {{ {arg_types} }} from "../types/abi-interfaces/{abi_name}Abi";\n'

HANDLER_FN = """
export async function {name}({arg_name}: {arg_type}): Promise<void> {{
  // Place your code logic here
}}
"""

INDEX_EXPORT = '\nexport * from "./mappings/{file_stem}"'


@dataclass(frozen=True)
class HandlerProps:
    name: str
    arg_name: str
    arg_type: str


@dataclass
class AbiProps:
    name: str
    handlers: list[HandlerProps] = field(default_factory=list)


def resolve_to_absolute_path(input_path: str) -> str:
    return os.path.abspath(os.path.expanduser(input_path))


def handler_file_name(abi_name: str) -> str:
    return f"{abi_name}Handlers.ts"


def handler_file_path(project_path: str | Path, abi_name: str) -> Path:
    return Path(project_path) / get_mapping_dir() / handler_file_name(abi_name)


def ensure_handler_file_available(project_path: str | Path, abi_name: str) -> Path:
    """Refuse to scaffold over an existing stub, which may hold user code."""
    path = handler_file_path(project_path, abi_name)
    if path.exists():
        raise HandlerExistsError(path.name)
    return path


def prepare_abi_directory(abi_path: str, project_path: str | Path) -> Path:
    """Copy the ABI into the project's ABI directory unless it is already there."""
    abi_dir = Path(project_path) / get_abi_dir()
    abi_dir.mkdir(parents=True, exist_ok=True)

    source = Path(resolve_to_absolute_path(abi_path))
    target = abi_dir / source.name
    if target.exists():
        return target
    if not source.is_file():
        raise FileNotFoundError(f"Unable to find abi at: {abi_path}")

    shutil.copyfile(source, target)
    logger.debug(f"Copied ABI to {target}")
    return target


def construct_handler_props(
    methods: tuple[list[SelectedMethod], list[SelectedMethod]],
    abi_name: str,
    registry: HandlerNameRegistry | None = None,
) -> AbiProps:
    """Stub signatures for ``(events, functions)``, calls first."""
    registry = registry or HandlerNameRegistry()
    events, functions = methods
    props = AbiProps(name=abi_name)

    for fn in functions:
        props.handlers.append(
            HandlerProps(
                name=registry.name_for(fn, abi_name, "tx"),
                arg_name="tx",
                arg_type=f"{upper_first(fn.name)}Transaction",
            )
        )
    for event in events:
        props.handlers.append(
            HandlerProps(
                name=registry.name_for(event, abi_name, "log"),
                arg_name="log",
                arg_type=f"{upper_first(event.name)}Log",
            )
        )
    return props


def render_handlers(props: AbiProps) -> str:
    arg_types = list(dict.fromkeys(h.arg_type for h in props.handlers))
    functions = "".join(
        HANDLER_FN.format(name=h.name, arg_name=h.arg_name, arg_type=h.arg_type)
        for h in props.handlers
    )
    imports = (
        HANDLER_IMPORT.format(arg_types=", ".join(arg_types), abi_name=props.name)
        if arg_types
        else ""
    )
    return HANDLERS_TS.format(abi_name=props.name, imports=imports, functions=functions)


def generate_handlers(
    methods: tuple[list[SelectedMethod], list[SelectedMethod]],
    project_path: str | Path,
    abi_name: str,
    registry: HandlerNameRegistry | None = None,
) -> Path:
    """Write ``<Abi>Handlers.ts`` and export it from the project index."""
    path = ensure_handler_file_available(project_path, abi_name)
    props = construct_handler_props(methods, abi_name, registry)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_handlers(props))

    index_path = Path(project_path) / get_index_file()
    index_path.parent.mkdir(parents=True, exist_ok=True)
    with open(index_path, "a") as f:
        f.write(INDEX_EXPORT.format(file_stem=path.stem))

    logger.info(f"Generated {len(props.handlers)} handler stubs in {path}")
    return path
