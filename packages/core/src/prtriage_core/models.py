"""Request-scoped values passed between the pipeline stages.

None of these outlive a single run; they are created when a review starts and
dropped when it ends.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from prtriage_core.errors import InvalidReference

DEFAULT_RUBRIC = """\
You are a code reviewer assistant.
Analyze the following pull request diff and provide a detailed assessment with the following structure:

1. DECISION: Start with either "APPROVE" or "REJECT" on the first line.

2. SUMMARY: Provide a brief 1-2 sentence summary of what the PR changes accomplish.

3. KEY POINTS: List 3-5 bullet points about the PR that cover:
   • Features or improvements added
   • Potential disadvantages or drawbacks
   • Security considerations
   • Performance implications
   • Code quality observations

Be specific with your observations, referencing actual code when relevant. If you approve the PR, still mention \
any minor issues or suggestions for improvement. If you reject it, clearly explain the critical issues that need \
to be addressed.

Base your assessment on:
- Code quality and best practices
- Security vulnerabilities
- Performance implications
- Logic errors or bugs
- Architecture and design considerations

Be thorough but concise in your review."""


@dataclass(frozen=True)
class PullRequestRef:
    """Identifies the pull request under review."""

    owner: str
    repo: str
    number: int

    def __post_init__(self):
        if not isinstance(self.owner, str) or not self.owner.strip():
            raise InvalidReference("Repository owner must be a non-empty string.")
        if not isinstance(self.repo, str) or not self.repo.strip():
            raise InvalidReference("Repository name must be a non-empty string.")
        # bool is an int subclass; True must not pass as PR #1.
        if isinstance(self.number, bool) or not isinstance(self.number, int) or self.number <= 0:
            raise InvalidReference(f"PR number must be a positive integer, got {self.number!r}.")

    @classmethod
    def from_slug(cls, slug: str, number: int) -> PullRequestRef:
        """Build a ref from the ``owner/name`` form used on the command line."""
        owner, sep, repo = (slug or "").partition("/")
        if not sep or "/" in repo:
            raise InvalidReference(f"Repository must be in owner/name format, got {slug!r}.")
        return cls(owner=owner, repo=repo, number=number)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


@dataclass(frozen=True)
class ReviewRequest:
    diff: str
    instructions: str

    @classmethod
    def build(cls, diff: str, extra_instructions: str | None = None) -> ReviewRequest:
        """Attach the fixed rubric, plus any caller-supplied instructions, to a diff."""
        instructions = DEFAULT_RUBRIC
        if extra_instructions:
            instructions = f"{DEFAULT_RUBRIC}\n\nAdditional Instructions: {extra_instructions}"
        return cls(diff=diff, instructions=instructions)


class Decision(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


@dataclass(frozen=True)
class ReviewVerdict:
    """The model's decision together with its untouched narrative."""

    decision: Decision
    raw_text: str

    @property
    def approved(self) -> bool:
        return self.decision is Decision.APPROVE


class TriageState(str, enum.Enum):
    PENDING = "pending"
    APPROVING = "approving"
    LABELING = "labeling"


@dataclass
class ActionOutcome:
    """Recorded result of the decision-specific action.

    ``state`` is always terminal (APPROVING or LABELING). There is no rollback:
    a failed merge leaves the comment and approval in place and is reported here.
    """

    state: TriageState
    action: str  # "merge" | "label"
    succeeded: bool
    detail: str = ""
