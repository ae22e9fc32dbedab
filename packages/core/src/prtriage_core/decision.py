"""Turn a verdict text into a decision, then into PR-surface actions.

The decision rule lives in parse_decision() and nowhere else.

State machine (two terminal states, no cycle, no rollback):

    PENDING --APPROVE--> APPROVING: comment → approve review → merge attempt
    PENDING --REJECT---> LABELING:  comment → label attempt

The comment always goes first so the explanation is on the PR before
anything irreversible happens.
"""

from __future__ import annotations

import logging

from prtriage_core.errors import ActionFailure
from prtriage_core.gh.pull_request import PullRequestSurface
from prtriage_core.models import ActionOutcome, Decision, ReviewVerdict, TriageState

logger = logging.getLogger(__name__)

APPROVAL_REVIEW_BODY = "Approved based on LLM analysis"
DEFAULT_LABEL = "needs-review"


def parse_decision(raw_text: str) -> Decision:
    """APPROVE if the first line contains "APPROVE" anywhere, else REJECT.

    Case-sensitive, unanchored substring match: "APPROVED!" and even
    "I would not APPROVE this" count as approval.
    """
    first_line = raw_text.split("\n", 1)[0]
    return Decision.APPROVE if "APPROVE" in first_line else Decision.REJECT


def interpret(raw_text: str) -> ReviewVerdict:
    return ReviewVerdict(decision=parse_decision(raw_text), raw_text=raw_text)


def format_comment(verdict: ReviewVerdict) -> str:
    status = "✅ **APPROVED**" if verdict.approved else "❌ **NEEDS REVIEW**"
    return f"## PR Review Analysis: {status}\n\n{verdict.raw_text}"


def apply_verdict(
    surface: PullRequestSurface,
    verdict: ReviewVerdict,
    label: str = DEFAULT_LABEL,
    merge_method: str = "squash",
) -> ActionOutcome:
    """Drive the PR surface from PENDING to the verdict's terminal state.

    A failed comment (or approval review) raises ActionFailure before any later
    step runs. A failed merge or label is logged and recorded in the outcome.
    """
    surface.post_comment(format_comment(verdict))
    logger.info("Posted review comment (%s)", verdict.decision.value)

    if verdict.decision is Decision.APPROVE:
        surface.approve(APPROVAL_REVIEW_BODY)
        try:
            surface.merge(merge_method)
        except ActionFailure as e:
            logger.warning("Could not auto-merge: %s", e.detail)
            return ActionOutcome(TriageState.APPROVING, "merge", succeeded=False, detail=e.detail)
        logger.info("Pull request merged (%s)", merge_method)
        return ActionOutcome(TriageState.APPROVING, "merge", succeeded=True)

    try:
        surface.add_label(label)
    except ActionFailure as e:
        logger.warning("Could not add label %r: %s", label, e.detail)
        return ActionOutcome(TriageState.LABELING, "label", succeeded=False, detail=e.detail)
    logger.info("Added label %r", label)
    return ActionOutcome(TriageState.LABELING, "label", succeeded=True)
