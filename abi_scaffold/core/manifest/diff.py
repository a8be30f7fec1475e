from __future__ import annotations

from loguru import logger

from abi_scaffold.core.abi.fragments import Fragment
from abi_scaffold.core.manifest.extractors import ManifestExtractor


def filter_existing_fragments(
    fragments: dict[str, Fragment], existing_methods: list[str]
) -> dict[str, Fragment]:
    """Keep fragments none of whose signature forms is already handled.

    A handler may be wired with the canonical key, the full format or the
    minimal format of a signature; any of them counts as present.
    """
    existing = set(existing_methods)
    clean: dict[str, Fragment] = {}
    for key, fragment in fragments.items():
        forms = [*fragment.formats().values(), key]
        missing = [form for form in forms if form not in existing]
        if len(missing) == 3:
            clean[key] = fragment
        else:
            logger.debug(f"{key} is already handled, skipping")
    return clean


def filter_existing_methods(
    event_fragments: dict[str, Fragment],
    function_fragments: dict[str, Fragment],
    extractor: ManifestExtractor,
    address: str | None,
) -> tuple[dict[str, Fragment], dict[str, Fragment]]:
    existing_events, existing_functions = extractor.existing_methods(address)
    return (
        filter_existing_fragments(event_fragments, existing_events),
        filter_existing_fragments(function_fragments, existing_functions),
    )
