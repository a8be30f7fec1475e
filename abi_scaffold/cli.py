from __future__ import annotations

import json
import sys
from typing import Any

import click
from loguru import logger

from abi_scaffold.core.codegen.import_abi import import_abi
from abi_scaffold.core.config import load_config
from abi_scaffold.core.errors import ScaffoldError


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def click_prompt(message: str, options: list[str]) -> list[str]:
    """Numbered multi-select on the terminal."""
    if not options:
        return []
    for idx, option in enumerate(options, start=1):
        click.echo(f"  [{idx}] {option}")
    raw = click.prompt(
        f"{message} (comma separated numbers, '*' for all, empty for none)",
        default="",
        show_default=False,
    )
    raw = raw.strip()
    if not raw:
        return []
    if raw == "*":
        return list(options)

    chosen: list[str] = []
    for part in raw.split(","):
        part = part.strip()
        if not part.isdigit() or not 1 <= int(part) <= len(options):
            raise click.BadParameter(f"'{part}' is not one of the listed numbers")
        option = options[int(part) - 1]
        if option not in chosen:
            chosen.append(option)
    return chosen


@click.group(name="abi-scaffold", help="Generate indexer datasources and handlers from ABIs.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
)
@click.option("--config", "config_path", default=None, help="Path to config.json.")
def cli(log_level: str, config_path: str | None) -> None:
    logger.remove()
    logger.add(sys.stderr, level=str(log_level).upper())
    if config_path:
        load_config(config_path, require_exists=True)


@cli.command(
    name="import-abi",
    help="Import an ABI and generate a datasource, handlers and mapping stubs.",
)
@click.argument("location", default=".")
@click.option("--abi-path", required=True, help="Path to the ABI or artifact file.")
@click.option("--address", default=None, help="The contract address.")
@click.option(
    "--start-block",
    type=click.IntRange(min=0),
    required=True,
    help="Block the handlers start at, usually the deployment block.",
)
@click.option("--end-block", type=click.IntRange(min=0), default=None)
@click.option(
    "--events",
    default=None,
    help="ABI events to generate handlers for. Use '*' for all. e.g. --events=\"approval, transfer\"",
)
@click.option(
    "--functions",
    default=None,
    help="ABI functions to generate handlers for. Use '*' for all.",
)
@click.option(
    "--interactive/--no-interactive",
    default=None,
    help="Prompt for events/functions that were not given. Defaults to on for terminals.",
)
def import_abi_cmd(
    location: str,
    abi_path: str,
    address: str | None,
    start_block: int,
    end_block: int | None,
    events: str | None,
    functions: str | None,
    interactive: bool | None,
) -> None:
    if interactive is None:
        interactive = sys.stdin.isatty()

    try:
        result = import_abi(
            location,
            abi_path=abi_path,
            start_block=start_block,
            address=address,
            end_block=end_block,
            events=events,
            functions=functions,
            prompt=click_prompt if interactive else None,
        )
    except (ScaffoldError, ValueError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc

    _echo_json({"ok": True, "result": result.model_dump()})


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
