"""Tests for the abi-scaffold command line."""

from __future__ import annotations

import json

import yaml
from click.testing import CliRunner

from abi_scaffold.cli import cli, click_prompt

ADDRESS = "0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D"


def test_import_abi_outputs_json_result(yaml_project, erc721_abi_path):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--log-level",
            "ERROR",
            "import-abi",
            str(yaml_project),
            "--abi-path",
            str(erc721_abi_path),
            "--address",
            ADDRESS,
            "--start-block",
            "12369621",
            "--functions",
            "transferFrom, approve",
            "--no-interactive",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["ok"] is True
    assert payload["result"]["functions"] == ["transferFrom"]
    assert payload["result"]["address"] == ADDRESS

    data = yaml.safe_load((yaml_project / "project.yaml").read_text())
    handlers = data["dataSources"][-1]["mapping"]["handlers"]
    assert [h["handler"] for h in handlers] == ["handleTransferFromErc721Tx"]


def test_import_abi_reports_selection_errors(yaml_project, erc721_abi_path):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--log-level",
            "ERROR",
            "import-abi",
            str(yaml_project),
            "--abi-path",
            str(erc721_abi_path),
            "--start-block",
            "1",
            "--events",
            "Mint",
        ],
    )

    assert result.exit_code == 1
    assert "'Mint' is not a valid event on Erc721" in result.output


def test_import_abi_requires_filters_when_not_interactive(yaml_project, erc721_abi_path):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--log-level",
            "ERROR",
            "import-abi",
            str(yaml_project),
            "--abi-path",
            str(erc721_abi_path),
            "--start-block",
            "1",
            "--no-interactive",
        ],
    )

    assert result.exit_code == 1
    assert "Please provide either events and/or functions" in result.output


def test_import_abi_rejects_negative_start_block(yaml_project, erc721_abi_path):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--log-level",
            "ERROR",
            "import-abi",
            str(yaml_project),
            "--abi-path",
            str(erc721_abi_path),
            "--start-block",
            "-1",
            "--events",
            "*",
        ],
    )

    assert result.exit_code == 2


def test_import_abi_interactive_prompts(ts_project, erc721_abi_path):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--log-level",
            "ERROR",
            "import-abi",
            str(ts_project),
            "--abi-path",
            str(erc721_abi_path),
            "--start-block",
            "5",
            "--functions",
            "approve",
            "--interactive",
        ],
        input="3, 1\n",
    )

    assert result.exit_code == 0, result.output
    assert "[3] Transfer(address,address,uint256)" in result.output
    payload = json.loads(result.output[result.output.index("{") :])
    assert payload["result"]["events"] == ["Transfer", "Approval"]
    assert payload["result"]["functions"] == ["approve"]


def test_click_prompt_selection():
    options = ["a()", "b()", "c()"]
    runner = CliRunner()

    with runner.isolation(input="*\n"):
        assert click_prompt("Select event", options) == options
    with runner.isolation(input="\n"):
        assert click_prompt("Select event", options) == []
    with runner.isolation(input="2,2, 1\n"):
        assert click_prompt("Select event", options) == ["b()", "a()"]
    assert click_prompt("Select event", []) == []
