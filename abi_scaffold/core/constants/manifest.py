ROOT_MAPPING_DIR = "src/mappings"
DEFAULT_ABI_DIR = "abis"
DEFAULT_HANDLER_BUILD_PATH = "./dist/index.js"
DEFAULT_INDEX_FILE = "src/index.ts"

DATASOURCES_KEY = "dataSources"
HANDLERS_KEY = "handlers"

# Manifest enum values as written in YAML manifests.
RUNTIME_DATASOURCE_KIND = "ethereum/Runtime"
CALL_HANDLER_KIND = "ethereum/TransactionHandler"
EVENT_HANDLER_KIND = "ethereum/LogHandler"

# The same values as TypeScript enum references.
TS_RUNTIME_DATASOURCE_KIND = "EthereumDatasourceKind.Runtime"
TS_CALL_HANDLER_KIND = "EthereumHandlerKind.Call"
TS_EVENT_HANDLER_KIND = "EthereumHandlerKind.Event"

TS_MANIFEST_FILENAME = "project.ts"
YAML_MANIFEST_FILENAMES = ("project.yaml", "project.yml")
