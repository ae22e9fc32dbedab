"""CLI entry point for prtriage.

Commands:
  review   triage a pull request: review its diff, then merge or label it
  init     write .prtriage.yml and a GitHub Actions workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prtriage_cli.commands.init import init_cmd
from prtriage_cli.commands.review import review_cmd

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("prtriage"),
    prog_name="prtriage",
)
@click.option(
    "--config",
    "config_path",
    default=".prtriage.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRTRIAGE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """LLM-driven pull request triage: approve-and-merge or flag for human review."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(init_cmd)
