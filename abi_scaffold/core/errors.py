from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for failures that abort an ABI import."""


class ManifestStructureError(ScaffoldError, ValueError):
    """The manifest text is not in the shape the editor expects."""


class KeyNotFoundError(ManifestStructureError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"{key} not found")


class UnbalancedDelimitersError(ManifestStructureError):
    def __init__(self, open_char: str, close_char: str, message: str | None = None):
        self.open_char = open_char
        self.close_char = close_char
        super().__init__(message or f"Unbalanced {open_char} and {close_char}")


class FragmentSelectionError(ScaffoldError, ValueError):
    def __init__(self, entry: str, kind: str, abi_name: str):
        self.entry = entry
        self.kind = kind
        self.abi_name = abi_name
        super().__init__(f"'{entry}' is not a valid {kind} on {abi_name}")


class HandlerExistsError(ScaffoldError, FileExistsError):
    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"file: {file_name} already exists")
