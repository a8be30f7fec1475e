from __future__ import annotations

from collections.abc import Callable
from typing import Literal

from loguru import logger

from abi_scaffold.core.abi.fragments import Fragment
from abi_scaffold.core.errors import FragmentSelectionError
from abi_scaffold.core.models import SelectedMethod

FragmentKind = Literal["event", "function"]

# Receives a message and the selectable signatures, returns the chosen ones.
Prompt = Callable[[str, list[str]], list[str]]

WILDCARD = "*"


def prompt_selectables(
    kind: FragmentKind,
    available: dict[str, Fragment],
    prompt: Prompt,
) -> dict[str, Fragment]:
    chosen = prompt(f"Select {kind}", list(available.keys()))
    return {key: available[key] for key in chosen if key in available}


def prepare_input_fragments(
    kind: FragmentKind,
    raw_input: str | None,
    available: dict[str, Fragment],
    abi_name: str,
    prompt: Prompt | None = None,
) -> dict[str, Fragment]:
    """Resolve a user filter (``*``, a comma list of names, or nothing) to fragments.

    Names match case-insensitively against fragment names; the first matching
    fragment wins. The result is keyed by canonical signature.
    """
    if not raw_input:
        if prompt is None:
            return {}
        return prompt_selectables(kind, available, prompt)

    if raw_input.strip() == WILDCARD:
        return dict(available)

    selected: dict[str, Fragment] = {}
    for entry in raw_input.split(","):
        cased = entry.strip().lower()
        match = next(
            (key for key, frag in available.items() if frag.name.lower() == cased),
            None,
        )
        if match is None:
            raise FragmentSelectionError(entry.strip(), kind, abi_name)
        selected[match] = available[match]

    logger.debug(f"Selected {kind}s on {abi_name}: {list(selected)}")
    return selected


def construct_method(fragments: dict[str, Fragment]) -> list[SelectedMethod]:
    return [SelectedMethod(name=frag.name, method=key) for key, frag in fragments.items()]
