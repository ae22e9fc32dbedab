"""review command: triage a pull request."""

from __future__ import annotations

import click
from github import GithubException
from rich.console import Console

from prtriage_core.errors import ConfigurationError, InvalidReference, TriageError
from prtriage_core.gh.pull_request import describe_error, get_pull_requests, get_repo
from prtriage_core.models import PullRequestRef
from prtriage_core.reviewer import run_review

console = Console()


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option(
    "--pr",
    "pr_number",
    type=int,
    default=None,
    help="Pull request number. Omit to list open PRs interactively.",
)
@click.option(
    "--provider",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="Model backend. 'openai' covers any OpenAI-compatible endpoint (OpenRouter by default).",
)
@click.option("--model", "-m", default=None, help="Model identifier. Overrides LLM_MODEL and the config file.")
@click.option(
    "--diff-source",
    type=click.Choice(["github", "mcp"]),
    default=None,
    help="Where to fetch the diff from: the GitHub API or a running MCP GitHub server.",
)
@click.option("--mcp-url", default=None, help="Base URL of the MCP GitHub server (with --diff-source mcp).")
@click.option("--instructions", default=None, help="Extra instructions appended to the review rubric.")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the verdict without commenting, approving, merging or labelling.",
)
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int | None,
    provider: str | None,
    model: str | None,
    diff_source: str | None,
    mcp_url: str | None,
    instructions: str | None,
    yes: bool,
    shadow: bool,
):
    """Review a pull request with an LLM and act on its verdict.

    An APPROVE verdict is posted as a comment, followed by an approving
    review and a squash merge. Anything else is posted as a comment and the
    PR is labelled for human review.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      OPENROUTER_API_KEY   Required with --provider openai (the default)
      ANTHROPIC_API_KEY    Required with --provider anthropic
    """
    from prtriage_core.config import load_config
    from prtriage_cli.auth import resolve_github_token

    config_path = ctx.obj.get("config_path", ".prtriage.yml") if ctx.obj else ".prtriage.yml"
    config = load_config(
        config_path,
        cli_overrides={
            "provider": provider,
            "model": model,
            "diff_source": diff_source,
            "mcp_url": mcp_url,
            "instructions": instructions,
        },
    )

    # Resolve token: env vars first, then gh CLI session.
    token = resolve_github_token()
    if not token and not shadow:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    config.github_token = token

    try:
        config.validate()
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    if pr_number is None:
        try:
            prs = list(get_pull_requests(get_repo(repo, token=token)))
        except GithubException as e:
            raise click.ClickException(f"Could not list pull requests for {repo}: {describe_error(e)}")
        if not prs:
            console.print("[yellow]No open pull requests found.[/yellow]")
            return
        console.print("\nOpen pull requests:")
        for pr in prs:
            console.print(f"  [bold]#{pr.number}[/bold]  {pr.title}")
        pr_number = click.prompt("\nEnter the pull request number", type=int)

    try:
        ref = PullRequestRef.from_slug(repo, pr_number)
    except InvalidReference as e:
        raise click.BadParameter(str(e), param_hint="--repo/--pr")

    try:
        run_review(ref, config, auto_confirm=yes, shadow=shadow)
    except (TriageError, FileNotFoundError) as e:
        raise click.ClickException(f"Error analyzing PR {ref}: {e}")
