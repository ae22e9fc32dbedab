"""Core PR triage orchestration: fetch → request → interpret → act."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from rich.console import Console

from prtriage_core.config import TriageConfig, load_instructions
from prtriage_core.decision import apply_verdict, format_comment, interpret
from prtriage_core.diffs import get_diff_source
from prtriage_core.diffs.base import BaseDiffSource
from prtriage_core.gh.pull_request import GithubPullRequestSurface, PullRequestSurface
from prtriage_core.models import ActionOutcome, PullRequestRef, ReviewRequest, ReviewVerdict
from prtriage_core.providers import get_reviewer
from prtriage_core.providers.base import BaseReviewer

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class TriageSummary:
    """Result returned by run_review.

    ``outcome`` is None when nothing was written to the PR (shadow mode).
    """

    ref: PullRequestRef
    verdict: ReviewVerdict
    outcome: ActionOutcome | None = None
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def decision(self) -> str:
        return self.verdict.decision.value


def request_verdict(
    ref: PullRequestRef,
    config: TriageConfig,
    diff_source: BaseDiffSource,
    reviewer: BaseReviewer,
) -> ReviewVerdict:
    """Fetch the diff, ask the model for a review, and parse its decision.

    Any error here is raised before the PR surface is touched.
    """
    extra = load_instructions(config)
    console.print(f"Fetching diff for [bold]{ref}[/bold]...")
    diff = diff_source.fetch(ref)

    request = ReviewRequest.build(diff, extra)
    console.print(f"Analyzing diff ({len(diff)} characters) with {reviewer.model}...")
    raw = reviewer.review(request)

    verdict = interpret(raw)
    logger.info("Model verdict for %s: %s", ref, verdict.decision.value)
    return verdict


def print_verdict(verdict: ReviewVerdict) -> None:
    """Print the verdict narrative to the terminal."""
    color = "green" if verdict.approved else "yellow"
    console.print(f"\n[bold {color}]Decision: {verdict.decision.value}[/bold {color}]")
    console.print("----------------")
    console.print(verdict.raw_text, markup=False, highlight=False)
    console.print("----------------")


def run_review(
    ref: PullRequestRef,
    config: TriageConfig,
    auto_confirm: bool = False,
    shadow: bool = False,
    diff_source: BaseDiffSource | None = None,
    reviewer: BaseReviewer | None = None,
    surface: PullRequestSurface | None = None,
) -> TriageSummary | None:
    """Run one triage and return a TriageSummary.

    Collaborators not passed in are built from ``config``; every call builds
    its own, so concurrent runs share no connections.

    Returns None only when the user declines the confirmation prompt.
    Raises a TriageError on any fatal failure.
    """
    diff_source = diff_source if diff_source is not None else get_diff_source(config)
    reviewer = reviewer if reviewer is not None else get_reviewer(config)

    verdict = request_verdict(ref, config, diff_source, reviewer)
    print_verdict(verdict)

    if shadow:
        console.print("[bold]Shadow mode: nothing posted.[/bold]")
        console.print("[dim]Would post:[/dim]")
        console.print(format_comment(verdict).split("\n", 1)[0], markup=False)
        return TriageSummary(ref=ref, verdict=verdict)

    if not auto_confirm:
        action = "approve and merge" if verdict.approved else f"label '{config.label}'"
        answer = input(f"Post the review comment and {action} on {ref}? (y/n): ").strip().lower()
        if answer != "y":
            return None

    if surface is None:
        surface = GithubPullRequestSurface.connect(ref, token=config.github_token)

    outcome = apply_verdict(surface, verdict, label=config.label, merge_method=config.merge_method)

    if outcome.succeeded:
        done = "merged" if outcome.action == "merge" else f"labelled '{config.label}'"
        console.print(f"\n[green]Review posted: {verdict.decision.value}. Pull request {done}.[/green]")
    else:
        console.print(
            f"\n[green]Review posted: {verdict.decision.value}.[/green] "
            f"[yellow]Could not {outcome.action}: {outcome.detail}[/yellow]"
        )

    return TriageSummary(ref=ref, verdict=verdict, outcome=outcome)
