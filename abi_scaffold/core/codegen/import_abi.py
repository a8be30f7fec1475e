"""Import an ABI into an indexing project.

Everything is computed in memory first; the ABI copy, the manifest and the
handler stub are only written once selection, diffing and construction have
all succeeded.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from abi_scaffold.core.abi.fragments import (
    AbiInterface,
    Fragment,
    filter_by_state_mutability,
    load_abi,
)
from abi_scaffold.core.abi.selection import (
    Prompt,
    construct_method,
    prepare_input_fragments,
)
from abi_scaffold.core.abi.type_resolver import (
    AbiCustomType,
    collect_custom_types,
    event_topic,
)
from abi_scaffold.core.codegen.handlers import (
    ensure_handler_file_available,
    generate_handlers,
    prepare_abi_directory,
    resolve_to_absolute_path,
)
from abi_scaffold.core.config import get_abi_dir
from abi_scaffold.core.constants.manifest import (
    TS_MANIFEST_FILENAME,
    YAML_MANIFEST_FILENAMES,
)
from abi_scaffold.core.manifest.datasource import HandlerNameRegistry, parse_contract_path
from abi_scaffold.core.manifest.diff import filter_existing_methods
from abi_scaffold.core.manifest.extractors import (
    ManifestExtractor,
    load_manifest,
    write_manifest,
)
from abi_scaffold.core.models import ImportResult, SelectedMethod, UserInput


def resolve_manifest(location: str | Path) -> tuple[Path, Path]:
    """Return ``(project_root, manifest_path)`` for a manifest file or project directory."""
    p = Path(location).expanduser().resolve()
    if p.is_file():
        return p.parent, p
    if not p.is_dir():
        raise FileNotFoundError(f"Project not found: {location}")

    for name in (TS_MANIFEST_FILENAME, *YAML_MANIFEST_FILENAMES):
        candidate = p / name
        if candidate.is_file():
            return p, candidate
    raise FileNotFoundError(f"No project manifest found in {p}")


def prepare_user_input(
    events: dict[str, Fragment],
    functions: dict[str, Fragment],
    extractor: ManifestExtractor,
    *,
    address: str | None,
    start_block: int,
    abi_file_name: str,
    custom_types: dict[str, AbiCustomType] | None = None,
    end_block: int | None = None,
) -> UserInput:
    clean_events, clean_functions = filter_existing_methods(
        events, functions, extractor, address
    )
    custom_types = custom_types or {}

    return UserInput(
        start_block=start_block,
        end_block=end_block,
        functions=construct_method(clean_functions),
        events=[
            SelectedMethod(name=frag.name, method=event_topic(frag, custom_types))
            for frag in clean_events.values()
        ],
        abi_path=f"./{get_abi_dir()}/{abi_file_name}",
        address=address,
    )


def import_abi(
    location: str | Path,
    *,
    abi_path: str,
    start_block: int,
    address: str | None = None,
    end_block: int | None = None,
    events: str | None = None,
    functions: str | None = None,
    prompt: Prompt | None = None,
) -> ImportResult:
    root, manifest_path = resolve_manifest(location)

    if prompt is None and not events and not functions:
        raise ValueError(
            "Please provide either events and/or functions from the ABI that you wish to import."
        )

    abi_name = parse_contract_path(abi_path).name
    ensure_handler_file_available(root, abi_name)

    abi_source = Path(resolve_to_absolute_path(abi_path))
    if not abi_source.is_file():
        raise FileNotFoundError(f"Unable to find abi at: {abi_path}")
    interface = AbiInterface(load_abi(abi_source))

    selected_events = prepare_input_fragments(
        "event", events, interface.events, abi_name, prompt
    )
    selected_functions = prepare_input_fragments(
        "function",
        functions,
        filter_by_state_mutability(interface.functions),
        abi_name,
        prompt,
    )
    if not selected_events and not selected_functions:
        raise ValueError(
            "When importing an ABI, please select at least one event or function"
        )

    manifest = load_manifest(manifest_path)
    user_input = prepare_user_input(
        selected_events,
        selected_functions,
        manifest,
        address=address,
        start_block=start_block,
        abi_file_name=abi_source.name,
        custom_types=collect_custom_types(interface.fragments),
        end_block=end_block,
    )
    if not user_input.events and not user_input.functions:
        logger.warning(
            f"Every selected method of {abi_name} is already handled, "
            "the new datasource has no handlers"
        )

    registry = HandlerNameRegistry()
    manifest.add_datasource(user_input, registry)

    prepare_abi_directory(str(abi_source), root)
    write_manifest(manifest_path, manifest)
    handler_file = generate_handlers(
        (user_input.events, user_input.functions), root, abi_name, registry
    )
    logger.info(f"Imported {abi_name} into {manifest_path}")

    return ImportResult(
        address=address,
        start_block=start_block,
        events=[e.name for e in user_input.events],
        functions=[f.name for f in user_input.functions],
        manifest_path=str(manifest_path),
        handler_file=str(handler_file),
    )
