"""Builds the datasource that gets added to a manifest."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Literal

from abi_scaffold.core.config import get_handler_build_path
from abi_scaffold.core.constants.manifest import (
    CALL_HANDLER_KIND,
    EVENT_HANDLER_KIND,
    RUNTIME_DATASOURCE_KIND,
    TS_CALL_HANDLER_KIND,
    TS_EVENT_HANDLER_KIND,
    TS_RUNTIME_DATASOURCE_KIND,
)
from abi_scaffold.core.models import SelectedMethod, UserInput

HandlerType = Literal["tx", "log"]

_TS_INDENT = "  "


def upper_first(value: str) -> str:
    return value[:1].upper() + value[1:]


@dataclass(frozen=True)
class ContractPath:
    name: str
    path: str


def normalize_name(raw_name: str) -> str:
    name = re.sub(r"\s+", "-", raw_name)
    name = name.replace(".", "-")
    name = re.sub(r"-[a-z]", lambda m: m.group(0)[-1].upper(), name)
    name = name.replace("-", "")
    name = re.sub(r"^\d+", "", name)
    name = upper_first(name)
    if not name:
        raise ValueError(f"Can't guess contract name, please rename file: {raw_name}")
    return name


def parse_contract_path(path: str) -> ContractPath:
    """``./abis/erc721.json`` -> ``Erc721``."""
    stem = PurePath(path).name
    if "." in stem:
        stem = stem[: stem.rindex(".")]
    return ContractPath(name=normalize_name(stem), path=path)


def generate_handler_name(name: str, abi_name: str, handler_type: HandlerType) -> str:
    return f"handle{upper_first(name)}{upper_first(abi_name)}{upper_first(handler_type)}"


class HandlerNameRegistry:
    """Hands out handler names that are unique within one import.

    Overloaded functions and events share a name, so later ones get a numeric
    suffix. Asking again for the same method returns the name it already got.
    """

    def __init__(self, taken: set[str] | None = None):
        self._taken: set[str] = set(taken or ())
        self._assigned: dict[tuple[str, str, HandlerType], str] = {}

    def name_for(
        self, method: SelectedMethod, abi_name: str, handler_type: HandlerType
    ) -> str:
        key = (method.method, abi_name, handler_type)
        if key in self._assigned:
            return self._assigned[key]

        base = generate_handler_name(method.name, abi_name, handler_type)
        candidate = base
        counter = 2
        while candidate in self._taken:
            candidate = f"{base}{counter}"
            counter += 1

        self._taken.add(candidate)
        self._assigned[key] = candidate
        return candidate


def _handlers(
    user_input: UserInput,
    abi_name: str,
    registry: HandlerNameRegistry,
    call_kind: str,
    event_kind: str,
) -> list[dict[str, Any]]:
    handlers: list[dict[str, Any]] = []
    for fn in user_input.functions:
        handlers.append(
            {
                "handler": registry.name_for(fn, abi_name, "tx"),
                "kind": call_kind,
                "filter": {"function": fn.method},
            }
        )
    for event in user_input.events:
        handlers.append(
            {
                "handler": registry.name_for(event, abi_name, "log"),
                "kind": event_kind,
                "filter": {"topics": [event.method]},
            }
        )
    return handlers


def construct_datasource(
    user_input: UserInput, registry: HandlerNameRegistry | None = None
) -> dict[str, Any]:
    """Datasource for a YAML manifest."""
    registry = registry or HandlerNameRegistry()
    abi_name = parse_contract_path(user_input.abi_path).name

    ds: dict[str, Any] = {
        "kind": RUNTIME_DATASOURCE_KIND,
        "startBlock": user_input.start_block,
    }
    if user_input.end_block is not None:
        ds["endBlock"] = user_input.end_block

    options: dict[str, Any] = {"abi": abi_name}
    if user_input.address:
        options["address"] = user_input.address
    ds["options"] = options
    ds["assets"] = {abi_name: {"file": user_input.abi_path}}
    ds["mapping"] = {
        "file": get_handler_build_path(),
        "handlers": _handlers(
            user_input, abi_name, registry, CALL_HANDLER_KIND, EVENT_HANDLER_KIND
        ),
    }
    return ds


class TsExpression(str):
    """Text emitted into TypeScript as-is instead of as a string literal."""


def _ts_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def ts_stringify(value: Any, level: int = 0) -> str:
    """Render *value* as a TypeScript literal, one key or item per line."""
    if isinstance(value, TsExpression):
        return str(value)
    if isinstance(value, str):
        return _ts_string(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "undefined"
    if isinstance(value, (int, float)):
        return str(value)

    inner = _TS_INDENT * (level + 1)
    outer = _TS_INDENT * level
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        items = [f"{inner}{ts_stringify(item, level + 1)}" for item in value]
        return "[\n" + ",\n".join(items) + f"\n{outer}]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        entries = [f"{inner}{k}: {ts_stringify(v, level + 1)}" for k, v in value.items()]
        return "{\n" + ",\n".join(entries) + f"\n{outer}}}"
    raise TypeError(f"Cannot render {type(value).__name__} as TypeScript")


def construct_ts_datasource(
    user_input: UserInput,
    registry: HandlerNameRegistry | None = None,
    level: int = 0,
) -> str:
    """Datasource for a TS manifest, as an object literal."""
    registry = registry or HandlerNameRegistry()
    abi_name = parse_contract_path(user_input.abi_path).name

    ds: dict[str, Any] = {
        "kind": TsExpression(TS_RUNTIME_DATASOURCE_KIND),
        "startBlock": user_input.start_block,
    }
    if user_input.end_block is not None:
        ds["endBlock"] = user_input.end_block

    options: dict[str, Any] = {"abi": abi_name}
    if user_input.address:
        options["address"] = user_input.address
    ds["options"] = options
    ds["assets"] = TsExpression(
        f"new Map([[{_ts_string(abi_name)}, {{file: {_ts_string(user_input.abi_path)}}}]])"
    )
    ds["mapping"] = {
        "file": get_handler_build_path(),
        "handlers": [
            {**h, "kind": TsExpression(h["kind"])}
            for h in _handlers(
                user_input,
                abi_name,
                registry,
                TS_CALL_HANDLER_KIND,
                TS_EVENT_HANDLER_KIND,
            )
        ],
    }
    return ts_stringify(ds, level)
