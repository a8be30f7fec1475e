"""Comment preserving access to YAML manifests."""

from __future__ import annotations

import io
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import CommentMark
from ruamel.yaml.tokens import CommentToken
from ruamel.yaml.util import load_yaml_guess_indent


def _to_node(value: Any) -> Any:
    if isinstance(value, dict):
        return CommentedMap((k, _to_node(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return CommentedSeq(_to_node(v) for v in value)
    return value


def _last_comment_slot(node: Any) -> tuple[Any, Any] | None:
    """Innermost ``(container, key)`` whose trailing comment ends *node*."""
    if isinstance(node, CommentedMap) and node:
        key = next(reversed(node))
    elif isinstance(node, CommentedSeq) and node:
        key = len(node) - 1
    else:
        return None
    return _last_comment_slot(node[key]) or (node, key)


def _comment_items(container: Any, key: Any) -> list:
    size = 4 if isinstance(container, CommentedMap) else 2
    return container.ca.items.setdefault(key, [None] * size)


def _comment_index(container: Any) -> int:
    return 2 if isinstance(container, CommentedMap) else 0


def _move_trailing_comment(previous: Any, node: Any) -> None:
    # ruamel stores comment lines that follow a sequence on its last item.
    source = _last_comment_slot(previous)
    target = _last_comment_slot(node)
    if source is None or target is None:
        return
    holder, key = source
    items = holder.ca.items.get(key)
    idx = _comment_index(holder)
    token = items[idx] if items and len(items) > idx else None
    if token is None:
        return
    head, sep, tail = token.value.partition("\n")
    if not tail.strip():
        return
    items[idx] = CommentToken(head + sep, token.start_mark, None) if head.strip() else None
    new_holder, new_key = target
    _comment_items(new_holder, new_key)[_comment_index(new_holder)] = CommentToken(
        "\n" + tail, CommentMark(0), None
    )


class StructuredDocument:
    """A YAML manifest held as a ruamel round-trip tree.

    Indentation is detected from the source so that lines which are not edited
    serialize back unchanged.
    """

    def __init__(self, data: CommentedMap, yaml: YAML):
        self._data = data
        self._yaml = yaml

    @classmethod
    def loads(cls, text: str) -> StructuredDocument:
        # ``indent`` is the sequence indent (dash offset included) when the
        # source has a block sequence, otherwise the mapping indent.
        _, indent, block_seq_indent = load_yaml_guess_indent(text)
        if block_seq_indent is None:
            mapping = indent or 2
            sequence, offset = mapping + 2, 2
        else:
            sequence = indent or block_seq_indent + 2
            mapping = block_seq_indent or sequence
            offset = block_seq_indent

        yaml = YAML()
        yaml.preserve_quotes = True
        yaml.width = 4096
        yaml.indent(mapping=mapping, sequence=sequence, offset=offset)

        data = yaml.load(text)
        if data is None:
            data = CommentedMap()
        if not isinstance(data, CommentedMap):
            raise ValueError("Manifest must be a mapping at the top level")
        return cls(data, yaml)

    @property
    def data(self) -> CommentedMap:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def append(self, key: str, node: Any) -> None:
        """Append *node* to the sequence at *key*, creating it when missing or empty."""
        node = _to_node(node)
        seq = self._data.get(key)
        if seq:
            if not isinstance(seq, list):
                raise ValueError(f"{key} must be a sequence")
            _move_trailing_comment(seq[-1], node)
            seq.append(node)
            return
        fresh = CommentedSeq()
        fresh.append(node)
        self._data[key] = fresh

    def dumps(self) -> str:
        buf = io.StringIO()
        self._yaml.dump(self._data, buf)
        return buf.getvalue()
