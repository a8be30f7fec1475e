"""The two manifest forms behind one interface.

Both forms answer the same question for the diff engine (which handler
signatures are already wired for an address) and both know how to take one
more datasource. ``YamlManifest`` works on a round-trip YAML tree,
``TsManifest`` on raw TypeScript text.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from loguru import logger

from abi_scaffold.core.constants.manifest import DATASOURCES_KEY, HANDLERS_KEY
from abi_scaffold.core.manifest.datasource import (
    HandlerNameRegistry,
    construct_datasource,
    construct_ts_datasource,
)
from abi_scaffold.core.manifest.structured import StructuredDocument
from abi_scaffold.core.manifest.text import (
    append_array_element,
    array_element_indent,
    array_elements,
    extract_array_value,
    find_matching_indices,
    key_line_indent,
    replace_array_value,
)
from abi_scaffold.core.models import UserInput

_ADDRESS_RE = re.compile(r"address\s*:\s*['\"]([^'\"]+)['\"]")
_FUNCTION_RE = re.compile(r"function\s*:\s*['\"]([^'\"]+)['\"]")
_FIRST_TOPIC_RE = re.compile(r"topics\s*:\s*(?:\[\s*)?(['\"`])(.*?)\1")
_OPTIONS_KEY = "options:"


def address_matches(ds_address: str | None, address: str | None) -> bool:
    """Whether a datasource address belongs to the contract being imported.

    Addresses compare case-insensitively. Without an input address only
    datasources without an address match.
    """
    if address and ds_address:
        return address.lower() == ds_address.lower()
    return not address and not ds_address


class ManifestExtractor(ABC):
    @abstractmethod
    def existing_methods(self, address: str | None) -> tuple[list[str], list[str]]:
        """Return ``(events, functions)`` already handled for *address*.

        Events are the first topic of each log handler filter, functions the
        ``function`` of each call handler filter.
        """

    @abstractmethod
    def add_datasource(
        self, user_input: UserInput, registry: HandlerNameRegistry | None = None
    ) -> None:
        pass

    @abstractmethod
    def dumps(self) -> str:
        pass


class YamlManifest(ManifestExtractor):
    def __init__(self, document: StructuredDocument):
        self.document = document

    @classmethod
    def loads(cls, text: str) -> YamlManifest:
        return cls(StructuredDocument.loads(text))

    def datasources(self) -> list[Any]:
        return list(self.document.get(DATASOURCES_KEY) or [])

    def existing_methods(self, address: str | None) -> tuple[list[str], list[str]]:
        events: list[str] = []
        functions: list[str] = []
        for ds in self.datasources():
            options = ds.get("options") or {}
            if not address_matches(options.get("address"), address):
                continue
            mapping = ds.get("mapping") or {}
            for handler in mapping.get(HANDLERS_KEY) or []:
                flt = handler.get("filter") or {}
                topics = flt.get("topics")
                if isinstance(topics, str):
                    events.append(topics)
                elif topics:
                    events.append(str(topics[0]))
                if flt.get("function"):
                    functions.append(str(flt["function"]))
        return events, functions

    def add_datasource(
        self, user_input: UserInput, registry: HandlerNameRegistry | None = None
    ) -> None:
        self.document.append(DATASOURCES_KEY, construct_datasource(user_input, registry))

    def dumps(self) -> str:
        return self.document.dumps()


def _ts_datasource_address(block: str) -> str | None:
    start = block.find(_OPTIONS_KEY)
    if start == -1:
        return None
    pairs = find_matching_indices(block, "{", "}", start)
    if not pairs:
        return None
    opt_start, opt_end = pairs[0]
    match = _ADDRESS_RE.search(block, opt_start, opt_end + 1)
    return match.group(1) if match else None


class TsManifest(ManifestExtractor):
    def __init__(self, text: str):
        self.text = text

    @classmethod
    def loads(cls, text: str) -> TsManifest:
        return cls(text)

    def datasources(self) -> list[str]:
        return array_elements(extract_array_value(self.text, DATASOURCES_KEY))

    def existing_methods(self, address: str | None) -> tuple[list[str], list[str]]:
        events: list[str] = []
        functions: list[str] = []
        for block in self.datasources():
            if not address_matches(_ts_datasource_address(block), address):
                continue
            if f"{HANDLERS_KEY}:" not in block:
                logger.debug("Skipping datasource without handlers")
                continue
            for handler in array_elements(extract_array_value(block, HANDLERS_KEY)):
                topic = _FIRST_TOPIC_RE.search(handler)
                if topic:
                    events.append(topic.group(2))
                fn = _FUNCTION_RE.search(handler)
                if fn:
                    functions.append(fn.group(1))
        return events, functions

    def add_datasource(
        self, user_input: UserInput, registry: HandlerNameRegistry | None = None
    ) -> None:
        current = extract_array_value(self.text, DATASOURCES_KEY)
        if array_elements(current):
            indent = array_element_indent(current)
        else:
            indent = key_line_indent(self.text, DATASOURCES_KEY) + "  "
        level = len(indent.expandtabs(2)) // 2
        element = construct_ts_datasource(user_input, registry, level=level)
        self.text = replace_array_value(
            self.text,
            DATASOURCES_KEY,
            append_array_element(current, element, indent=indent),
        )

    def dumps(self) -> str:
        return self.text


def load_manifest(path: str | Path) -> ManifestExtractor:
    """Read a manifest once and pick the form from its extension."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix == ".ts":
        return TsManifest.loads(text)
    if p.suffix in (".yaml", ".yml"):
        return YamlManifest.loads(text)
    raise ValueError(f"Unsupported manifest type: {p.name}")


def write_manifest(path: str | Path, manifest: ManifestExtractor) -> None:
    Path(path).write_text(manifest.dumps(), encoding="utf-8")
