from abi_scaffold.core.abi.fragments import AbiInterface
from abi_scaffold.core.codegen.import_abi import import_abi
from abi_scaffold.core.manifest.datasource import HandlerNameRegistry
from abi_scaffold.core.manifest.extractors import ManifestExtractor
from abi_scaffold.core.models import SelectedMethod, UserInput

__all__ = [
    "AbiInterface",
    "HandlerNameRegistry",
    "ManifestExtractor",
    "SelectedMethod",
    "UserInput",
    "import_abi",
]
