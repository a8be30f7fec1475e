__version__ = "0.1.0"

from abi_scaffold.core import (
    AbiInterface,
    HandlerNameRegistry,
    ManifestExtractor,
    SelectedMethod,
    UserInput,
    import_abi,
)

__all__ = [
    "__version__",
    "AbiInterface",
    "HandlerNameRegistry",
    "ManifestExtractor",
    "SelectedMethod",
    "UserInput",
    "import_abi",
]
