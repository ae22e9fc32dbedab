"""init command: write .prtriage.yml and an optional GitHub Actions workflow.

The generated workflow runs `prtriage review --yes` on every pull request
event, so triage happens in CI without anyone invoking the CLI by hand.
"""

from __future__ import annotations

import importlib.metadata
from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()

_WORKFLOW_TEMPLATE = """\
name: LLM-Powered PR Review

on:
  pull_request:
    types: [opened, reopened, synchronize]

jobs:
  triage:
    runs-on: ubuntu-latest
    permissions:
      contents: write
      pull-requests: write
      issues: write

    steps:
      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install prtriage
        run: pip install "prtriage{extra}=={version}"

      - name: Triage pull request
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          {api_key_env}: ${{{{ secrets.{api_key_env} }}}}
          LLM_MODEL: ${{{{ vars.LLM_MODEL }}}}
        run: |
          prtriage review \\
            --repo ${{{{ github.repository }}}} \\
            --pr ${{{{ github.event.pull_request.number }}}} \\
            --yes
"""

_API_KEY_ENV = {"openai": "OPENROUTER_API_KEY", "anthropic": "ANTHROPIC_API_KEY"}


@click.command("init")
@click.option("--yes", "-y", is_flag=True, help="Accept every default without prompting.")
def init_cmd(yes: bool):
    """Set up prtriage for this repository.

    Creates .prtriage.yml and, optionally, .github/workflows/prtriage.yml.
    """
    console.print("\n[bold cyan]prtriage init[/bold cyan]: setup wizard\n")

    if yes:
        provider, model, label, setup_ci = "openai", "", "needs-review", True
    else:
        provider = click.prompt(
            "Model provider",
            type=click.Choice(["openai", "anthropic"]),
            default="openai",
        )
        model = click.prompt("Model identifier (blank for the provider default)", default="", show_default=False)
        label = click.prompt("Label for PRs that need human review", default="needs-review")
        setup_ci = click.confirm("\nGenerate .github/workflows/prtriage.yml for GitHub Actions?", default=True)

    config: dict = {"provider": provider, "label": label}
    if model:
        config["model"] = model

    _write_config(config)
    console.print("[green]Created .prtriage.yml[/green]")

    if setup_ci:
        api_key_env = _API_KEY_ENV[provider]
        _write_workflow(provider, api_key_env)
        console.print("[green]Created .github/workflows/prtriage.yml[/green]")
        console.print(
            f"\n[yellow]Remember to add [bold]{api_key_env}[/bold] to your "
            "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Triage a pull request with: [bold]prtriage review --repo owner/name --pr <number>[/bold]")


def _write_config(config: dict) -> None:
    """Write or update .prtriage.yml, preserving any existing keys."""
    path = Path(".prtriage.yml")
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    """Read the current prtriage version from the installed package metadata."""
    try:
        return importlib.metadata.version("prtriage")
    except importlib.metadata.PackageNotFoundError:
        return "0.1.0"


def _write_workflow(provider: str, api_key_env: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    workflow_path = workflow_dir / "prtriage.yml"
    extra = "[anthropic]" if provider == "anthropic" else ""
    workflow_path.write_text(_WORKFLOW_TEMPLATE.format(extra=extra, api_key_env=api_key_env, version=_get_version()))
