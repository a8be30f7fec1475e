from __future__ import annotations

import pytest
import yaml

from abi_scaffold.core.codegen.import_abi import import_abi, resolve_manifest
from abi_scaffold.core.errors import FragmentSelectionError, HandlerExistsError
from abi_scaffold.core.manifest.extractors import load_manifest

ADDRESS = "0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D"


def test_resolve_manifest_prefers_ts(tmp_path):
    (tmp_path / "project.yaml").write_text("dataSources: []\n")
    (tmp_path / "project.ts").write_text("const project = { dataSources: [] };\n")
    assert resolve_manifest(tmp_path) == (tmp_path.resolve(), tmp_path.resolve() / "project.ts")


def test_resolve_manifest_accepts_file(yaml_project):
    manifest = yaml_project / "project.yaml"
    assert resolve_manifest(manifest) == (yaml_project.resolve(), manifest.resolve())


def test_resolve_manifest_without_manifest(tmp_path):
    with pytest.raises(FileNotFoundError, match="No project manifest found"):
        resolve_manifest(tmp_path)
    with pytest.raises(FileNotFoundError, match="Project not found"):
        resolve_manifest(tmp_path / "missing")


def test_import_skips_functions_already_handled(yaml_project, erc721_abi_path):
    result = import_abi(
        yaml_project,
        abi_path=str(erc721_abi_path),
        start_block=12369621,
        address=ADDRESS.lower(),
        functions="transferFrom, approve",
    )

    assert result.functions == ["transferFrom"]
    assert result.events == []

    data = yaml.safe_load((yaml_project / "project.yaml").read_text())
    assert len(data["dataSources"]) == 2
    added = data["dataSources"][-1]
    assert added == {
        "kind": "ethereum/Runtime",
        "startBlock": 12369621,
        "options": {"abi": "Erc721", "address": ADDRESS.lower()},
        "assets": {"Erc721": {"file": "./abis/erc721.json"}},
        "mapping": {
            "file": "./dist/index.js",
            "handlers": [
                {
                    "handler": "handleTransferFromErc721Tx",
                    "kind": "ethereum/TransactionHandler",
                    "filter": {"function": "transferFrom(address,address,uint256)"},
                }
            ],
        },
    }

    handlers = (yaml_project / "src" / "mappings" / "Erc721Handlers.ts").read_text()
    assert "export async function handleTransferFromErc721Tx(tx: TransferFromTransaction)" in handlers
    assert "approve" not in handlers.lower()
    assert (yaml_project / "abis" / "erc721.json").read_text() == erc721_abi_path.read_text()
    assert (yaml_project / "src" / "index.ts").read_text().endswith(
        'export * from "./mappings/Erc721Handlers"'
    )
    assert result.handler_file == str(yaml_project.resolve() / "src" / "mappings" / "Erc721Handlers.ts")


def test_import_into_ts_manifest(ts_project, erc721_abi_path):
    result = import_abi(
        ts_project,
        abi_path=str(erc721_abi_path),
        start_block=1,
        end_block=2,
        events="*",
        functions="safeTransferFrom",
    )

    assert result.address is None
    assert result.events == ["Approval", "ApprovalForAll", "Transfer"]
    assert result.functions == ["safeTransferFrom"]

    text = (ts_project / "project.ts").read_text()
    assert "      endBlock: 2," in text
    assert "new Map([['Erc721', {file: './abis/erc721.json'}]])" in text
    assert "handler: 'handleSafeTransferFromErc721Tx'" in text
    assert "kind: EthereumHandlerKind.Event" in text
    assert text.index("startBlock: 12369621") < text.index("startBlock: 1,")

    events, functions = load_manifest(ts_project / "project.ts").existing_methods(None)
    assert events == [
        "Approval(address,address,uint256)",
        "ApprovalForAll(address,address,bool)",
        "Transfer(address,address,uint256)",
    ]
    assert functions == ["safeTransferFrom(address,address,uint256)"]


def test_import_uses_prompt_for_missing_filters(yaml_project, erc721_abi_path):
    calls = []

    def prompt(message, options):
        calls.append((message, options))
        return options[:1]

    result = import_abi(
        yaml_project,
        abi_path=str(erc721_abi_path),
        start_block=1,
        prompt=prompt,
    )

    assert [message for message, _ in calls] == ["Select event", "Select function"]
    assert calls[1][1] == [
        "approve(address,uint256)",
        "safeTransferFrom(address,address,uint256)",
        "safeTransferFrom(address,address,uint256,bytes)",
        "setApprovalForAll(address,bool)",
        "transferFrom(address,address,uint256)",
    ]
    assert result.events == ["Approval"]
    assert result.functions == ["approve"]


def test_import_requires_a_filter(yaml_project, erc721_abi_path):
    with pytest.raises(ValueError, match="Please provide either events and/or functions"):
        import_abi(yaml_project, abi_path=str(erc721_abi_path), start_block=1)


def test_import_requires_a_selection(yaml_project, erc721_abi_path):
    with pytest.raises(ValueError, match="select at least one event or function"):
        import_abi(
            yaml_project,
            abi_path=str(erc721_abi_path),
            start_block=1,
            prompt=lambda message, options: [],
        )


def test_import_with_everything_handled_still_adds_datasource(yaml_project, erc721_abi_path):
    result = import_abi(
        yaml_project,
        abi_path=str(erc721_abi_path),
        start_block=1,
        address=ADDRESS,
        events="transfer",
        functions="approve",
    )
    assert result.events == []
    assert result.functions == []

    data = yaml.safe_load((yaml_project / "project.yaml").read_text())
    assert data["dataSources"][-1]["mapping"]["handlers"] == []


def test_failed_selection_writes_nothing(yaml_project, erc721_abi_path):
    before = (yaml_project / "project.yaml").read_text()
    with pytest.raises(FragmentSelectionError, match="'mint' is not a valid function on Erc721"):
        import_abi(
            yaml_project,
            abi_path=str(erc721_abi_path),
            start_block=1,
            functions="approve, mint",
        )
    assert (yaml_project / "project.yaml").read_text() == before
    assert not (yaml_project / "abis").exists()
    assert not (yaml_project / "src" / "mappings").exists()


def test_existing_handler_file_aborts_before_writing(yaml_project, erc721_abi_path):
    stub = yaml_project / "src" / "mappings" / "Erc721Handlers.ts"
    stub.parent.mkdir(parents=True)
    stub.write_text("// mine")
    before = (yaml_project / "project.yaml").read_text()

    with pytest.raises(HandlerExistsError):
        import_abi(
            yaml_project,
            abi_path=str(erc721_abi_path),
            start_block=1,
            events="*",
        )
    assert (yaml_project / "project.yaml").read_text() == before
    assert stub.read_text() == "// mine"


def test_missing_abi(yaml_project, tmp_path):
    with pytest.raises(FileNotFoundError, match="Unable to find abi at"):
        import_abi(
            yaml_project,
            abi_path=str(tmp_path / "erc20.json"),
            start_block=1,
            events="*",
        )


def test_end_block_before_start_block_is_rejected(yaml_project, erc721_abi_path):
    with pytest.raises(ValueError, match="end_block must not be lower than start_block"):
        import_abi(
            yaml_project,
            abi_path=str(erc721_abi_path),
            start_block=10,
            end_block=5,
            events="*",
        )
