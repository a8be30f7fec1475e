"""ABI loading and fragment formatting.

Each event and function of an ABI becomes a :class:`Fragment` keyed by its
canonical signature. Fragments can also render themselves in a ``full``
(parameter names, ``indexed``) and a ``minimal`` (bare types) form, which are
the other shapes a signature may take in a hand-written manifest.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml
from eth_utils.abi import collapse_if_tuple
from loguru import logger

FormatType = Literal["sighash", "minimal", "full"]

_KEYWORD_RE = re.compile(r"^(event|function) ")
_ARRAY_SUFFIX_RE = re.compile(r"^(.*)\[(\d*)\]$")


def remove_keyword(value: str) -> str:
    return _KEYWORD_RE.sub("", value, count=1)


@dataclass(frozen=True)
class ParamType:
    type: str
    name: str = ""
    indexed: bool | None = None
    components: tuple[ParamType, ...] = ()
    internal_type: str | None = None

    @classmethod
    def from_abi(cls, raw: dict[str, Any]) -> ParamType:
        return cls(
            type=str(raw.get("type", "")).strip(),
            name=str(raw.get("name") or ""),
            indexed=raw.get("indexed"),
            components=tuple(cls.from_abi(c) for c in raw.get("components") or []),
            internal_type=raw.get("internalType"),
        )

    def to_abi(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "name": self.name}
        if self.components:
            out["components"] = [c.to_abi() for c in self.components]
        return out

    @property
    def canonical_type(self) -> str:
        return collapse_if_tuple(self.to_abi())

    def format(self, fmt: FormatType = "sighash") -> str:
        match = _ARRAY_SUFFIX_RE.match(self.type)
        if match:
            child = ParamType(
                type=match.group(1),
                components=self.components,
                internal_type=self.internal_type,
            )
            result = f"{child.format(fmt)}[{match.group(2)}]"
        elif self.type == "tuple":
            sep = ", " if fmt == "full" else ","
            body = sep.join(c.format(fmt) for c in self.components)
            result = f"({body})" if fmt == "sighash" else f"tuple({body})"
        else:
            result = self.type

        if fmt != "sighash":
            if self.indexed:
                result += " indexed"
            if fmt == "full" and self.name:
                result += f" {self.name}"
        return result


@dataclass(frozen=True)
class Fragment:
    type: Literal["event", "function"]
    name: str
    inputs: tuple[ParamType, ...] = ()
    outputs: tuple[ParamType, ...] = ()
    state_mutability: str = "nonpayable"
    anonymous: bool = False
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_abi(cls, raw: dict[str, Any]) -> Fragment:
        return cls(
            type=raw["type"],
            name=str(raw.get("name") or ""),
            inputs=tuple(ParamType.from_abi(i) for i in raw.get("inputs") or []),
            outputs=tuple(ParamType.from_abi(o) for o in raw.get("outputs") or []),
            state_mutability=_state_mutability(raw),
            anonymous=bool(raw.get("anonymous", False)),
            raw=raw,
        )

    @property
    def key(self) -> str:
        types = ",".join(p.canonical_type for p in self.inputs)
        return f"{self.name}({types})"

    def format(self, fmt: FormatType = "sighash") -> str:
        if fmt == "sighash":
            return self.key

        sep = ", " if fmt == "full" else ","
        result = f"{self.type} {self.name}({sep.join(p.format(fmt) for p in self.inputs)}) "
        if self.type == "event":
            if self.anonymous:
                result += "anonymous "
        else:
            if self.state_mutability != "nonpayable":
                result += f"{self.state_mutability} "
            if self.outputs:
                returns = ", ".join(o.format(fmt) for o in self.outputs)
                result += f"returns ({returns}) "
        return result.strip()

    def formats(self) -> dict[str, str]:
        """Return the ``full`` and ``minimal`` renderings without the leading keyword."""
        return {
            "full": remove_keyword(self.format("full")),
            "min": remove_keyword(self.format("minimal")),
        }


def _state_mutability(raw: dict[str, Any]) -> str:
    if raw.get("stateMutability"):
        return str(raw["stateMutability"])
    # Pre-0.5 ABIs only carry ``constant`` / ``payable``.
    if raw.get("constant"):
        return "view"
    if raw.get("payable"):
        return "payable"
    return "nonpayable"


class AbiInterface:
    """Events and functions of one ABI, keyed by canonical signature."""

    def __init__(self, abi: list[dict[str, Any]]):
        self.abi = [entry for entry in abi if isinstance(entry, dict)]
        self.events: dict[str, Fragment] = {}
        self.functions: dict[str, Fragment] = {}

        for entry in self.abi:
            kind = entry.get("type", "function")
            if kind not in ("event", "function"):
                continue
            fragment = Fragment.from_abi({**entry, "type": kind})
            bucket = self.events if kind == "event" else self.functions
            if fragment.key in bucket:
                logger.warning(f"Duplicate {kind} {fragment.key} in ABI, keeping the first")
                continue
            bucket[fragment.key] = fragment

    @property
    def fragments(self) -> list[Fragment]:
        return [*self.events.values(), *self.functions.values()]


def load_abi(path: str | Path) -> list[dict[str, Any]]:
    """Read an ABI, or the ``abi`` array of a compiler artifact, from disk."""
    p = Path(path)
    text = p.read_text()
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)

    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("abi"), list):
        return data["abi"]
    raise ValueError("Provided ABI is not a valid ABI or Artifact")


def filter_by_state_mutability(functions: dict[str, Fragment]) -> dict[str, Fragment]:
    """Drop ``view`` functions; they never appear in transactions."""
    return {k: f for k, f in functions.items() if f.state_mutability != "view"}
