"""Struct and enum resolution for event selectors.

ABI JSON only carries primitive types. Struct and enum names survive in the
``internalType`` field, and signatures written with those names cannot be
hashed directly: every custom name has to be replaced by the primitive
encoding first (a parenthesised tuple for structs, ``uint8`` for enums).

Enum detection is a heuristic since the ABI does not tell enums apart from
plain integers. Anything that still looks like an unknown type after
substitution is reported as a warning rather than an error.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from eth_utils import keccak
from loguru import logger

from abi_scaffold.core.abi.fragments import Fragment, ParamType

CustomTypeKind = Literal["struct", "enum"]

_TYPE_ALIASES = {"uint": "uint256", "int": "int256"}
_STANDARD_TYPE_RE = re.compile(
    r"^(address|bool|string|bytes([1-9]|[12][0-9]|3[0-2])?|u?int(8|16|24|32|40|48|56|64|72|80|88|96|104|112|120|128|136|144|152|160|168|176|184|192|200|208|216|224|232|240|248|256)?)(\[\d*\])*$"
)
_ENUM_BASE_TYPES = ("uint8", "uint256")
_ARRAY_SUFFIX_RE = re.compile(r"(\[\d*\])+$")
_INTERNAL_PREFIX_RE = re.compile(r"^(struct|enum|contract)\s+")
# A capitalised identifier in type position: ``Order indexed order`` or ``Order order``.
_TYPE_POSITION_RE = re.compile(
    r"\b([A-Z][A-Za-z0-9_]*)(?:\[\d*\])*\s+(?:indexed\s+)?[a-z_][A-Za-z0-9_]*"
)
_INDEXED_RE = re.compile(r"\bindexed\b")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class AbiCustomType:
    name: str
    kind: CustomTypeKind
    resolved_type: str


def is_standard_type(type_name: str) -> bool:
    return bool(_STANDARD_TYPE_RE.match(type_name.strip()))


def custom_type_name(internal_type: str | None) -> str | None:
    """``struct Pool.Key[]`` -> ``Key``."""
    if not internal_type:
        return None
    name = _INTERNAL_PREFIX_RE.sub("", internal_type.strip())
    name = _ARRAY_SUFFIX_RE.sub("", name)
    return name.rsplit(".", 1)[-1] or None


def resolve_primitive(param: ParamType) -> str:
    base = _ARRAY_SUFFIX_RE.sub("", param.type)
    suffix = param.type[len(base) :]
    if base == "tuple":
        inner = ",".join(resolve_primitive(c) for c in param.components)
        return f"({inner}){suffix}"
    return _TYPE_ALIASES.get(base, base) + suffix


def _classify(param: ParamType) -> AbiCustomType | None:
    name = custom_type_name(param.internal_type)
    if not name:
        return None

    base = _ARRAY_SUFFIX_RE.sub("", param.type)
    if base == "tuple":
        inner = ",".join(resolve_primitive(c) for c in param.components)
        return AbiCustomType(name=name, kind="struct", resolved_type=f"({inner})")

    if base in _ENUM_BASE_TYPES and name != base and not is_standard_type(name):
        return AbiCustomType(name=name, kind="enum", resolved_type="uint8")
    return None


def _walk(params: Iterable[ParamType], found: dict[str, AbiCustomType]) -> None:
    for param in params:
        custom = _classify(param)
        if custom is not None and custom.name not in found:
            found[custom.name] = custom
        if param.components:
            _walk(param.components, found)


def collect_custom_types(fragments: Iterable[Fragment]) -> dict[str, AbiCustomType]:
    """Collect struct and enum parameter types of every event and function, by name."""
    found: dict[str, AbiCustomType] = {}
    for fragment in fragments:
        _walk(fragment.inputs, found)
    return found


def resolve_signature(signature: str, custom_types: dict[str, AbiCustomType]) -> str:
    """Substitute every known custom type name in the parameter list of *signature*.

    Capitalised identifiers that still sit in type position afterwards are
    logged, since they are most likely types this ABI does not describe.
    """
    paren = signature.find("(")
    if paren == -1:
        return signature
    head, params = signature[:paren], signature[paren:]

    for custom in custom_types.values():
        params = re.sub(
            rf"\b{re.escape(custom.name)}\b",
            lambda _m, resolved=custom.resolved_type: resolved,
            params,
        )

    unresolved = sorted(
        {
            m.group(1)
            for m in _TYPE_POSITION_RE.finditer(params)
            if m.group(1) not in custom_types and not is_standard_type(m.group(1))
        }
    )
    if unresolved:
        logger.warning(
            f"Unresolved types in {head}: {', '.join(unresolved)}. "
            "The generated topic may need to be corrected by hand."
        )
    return head + params


def _split_top_level(params: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for ch in params:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        current += ch
    if current.strip():
        parts.append(current)
    return parts


def _param_type(param: str) -> str:
    param = param.strip()
    depth = 0
    for idx, ch in enumerate(param):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch.isspace() and depth == 0:
            # Whatever follows the type at depth 0 is a parameter name.
            return param[:idx]
    return param


def canonical_signature(signature: str) -> str:
    """Strip ``indexed``, parameter names and whitespace from *signature*."""
    cleaned = _WHITESPACE_RE.sub(" ", _INDEXED_RE.sub("", signature)).strip()
    paren = cleaned.find("(")
    if paren == -1 or not cleaned.endswith(")"):
        return _WHITESPACE_RE.sub("", cleaned)

    name = cleaned[:paren].strip()
    params = _split_top_level(cleaned[paren + 1 : -1])
    types = [_WHITESPACE_RE.sub("", _param_type(p)) for p in params]
    return f"{name}({','.join(types)})"


def topic_hash(signature: str) -> str:
    """The 32 byte event selector of *signature* as a ``0x`` hex string."""
    return "0x" + keccak(text=canonical_signature(signature)).hex()


def _display_type(param: ParamType, custom_types: dict[str, AbiCustomType]) -> str:
    name = custom_type_name(param.internal_type)
    if name and name in custom_types:
        suffix = param.type[len(_ARRAY_SUFFIX_RE.sub("", param.type)) :]
        return name + suffix
    return resolve_primitive(param)


def display_signature(fragment: Fragment, custom_types: dict[str, AbiCustomType]) -> str:
    """Render *fragment* the way it reads in Solidity source, custom type names included."""
    params = []
    for param in fragment.inputs:
        rendered = _display_type(param, custom_types)
        if param.indexed:
            rendered += " indexed"
        if param.name:
            rendered += f" {param.name}"
        params.append(rendered)
    return f"{fragment.name}({', '.join(params)})"


def event_topic(fragment: Fragment, custom_types: dict[str, AbiCustomType]) -> str:
    """Topic filter for an event: its signature, or a selector hash when custom types were resolved."""
    raw = display_signature(fragment, custom_types)
    resolved = resolve_signature(raw, custom_types)
    if resolved == raw:
        return fragment.key
    topic = topic_hash(resolved)
    logger.debug(f"Resolved {raw} to {canonical_signature(resolved)} ({topic})")
    return topic
