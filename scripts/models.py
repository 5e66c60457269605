"""
models.py — Value types and errors shared by the review scripts.

Everything here lives for one invocation only: a review run builds
Findings and FileReviewResults, folds them into one AggregateReport,
and derives the gate from it. Nothing is persisted between runs.
"""

import re
from dataclasses import dataclass, field

SEVERITY_CRITICAL = "critical"
SEVERITY_SUGGESTION = "suggestion"

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ReviewError(Exception):
    """Base class for errors raised by the review scripts."""


class ConfigurationError(ReviewError):
    """Unresolvable stack name or missing identifiers. Fatal, raised before any network call."""


class CollaboratorError(ReviewError):
    """A call to GitHub or the completion endpoint failed."""


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rule:
    """One pattern check.

    ``pattern`` is searched on the line; its named groups can be referenced
    as ``{name}`` in ``message``, ``requires`` and ``forbids``. A rule with
    ``window`` or ``lookback`` set targets the window of lines around the
    match (``lookback`` lines before, ``window`` lines after); ``requires``
    must match that window and ``forbids`` must not. ``file_requires`` is
    checked against the whole file.
    """

    id: str
    pattern: str
    severity: str
    category: str
    message: str
    priority: str = "medium"
    unless: str = ""
    window: int = 0
    lookback: int = 0
    requires: str = ""
    forbids: str = ""
    file_requires: str = ""

    @property
    def target(self) -> str:
        return "window" if (self.window or self.lookback) else "line"


def fill(template: str, values: dict[str, str]) -> str:
    """Substitute ``{name}`` placeholders, leaving regex quantifiers like ``{2,}`` alone."""
    if not values or "{" not in template:
        return template
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


# ---------------------------------------------------------------------------
# Findings and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Finding:
    file_path: str
    line: int
    severity: str
    category: str
    message: str
    priority: str = "medium"
    rule_id: str = ""

    @property
    def is_critical(self) -> bool:
        return self.severity == SEVERITY_CRITICAL


@dataclass(frozen=True)
class FileReviewResult:
    file_path: str
    stack: str
    findings: tuple[Finding, ...] = ()
    ai_narrative: str = ""


@dataclass
class AggregateReport:
    """Accumulates per-file results across every selected stack."""

    stacks: list[str] = field(default_factory=list)
    findings_by_file: dict[str, list[Finding]] = field(default_factory=dict)
    ai_narratives_by_file: dict[str, str] = field(default_factory=dict)
    files_reviewed: list[str] = field(default_factory=list)

    def add(self, result: FileReviewResult) -> None:
        if result.file_path not in self.files_reviewed:
            self.files_reviewed.append(result.file_path)
        if result.findings:
            self.findings_by_file.setdefault(result.file_path, []).extend(result.findings)
        if result.ai_narrative:
            self.ai_narratives_by_file[result.file_path] = result.ai_narrative

    @property
    def critical_count(self) -> int:
        return sum(1 for f in self.all_findings() if f.is_critical)

    def all_findings(self) -> list[Finding]:
        return [f for findings in self.findings_by_file.values() for f in findings]

    def critical_by_file(self) -> dict[str, list[Finding]]:
        grouped: dict[str, list[Finding]] = {}
        for path, findings in self.findings_by_file.items():
            critical = [f for f in findings if f.is_critical]
            if critical:
                grouped[path] = critical
        return grouped

    def suggestions_by_category(self) -> dict[str, list[Finding]]:
        grouped: dict[str, list[Finding]] = {}
        for finding in self.all_findings():
            if not finding.is_critical:
                grouped.setdefault(finding.category, []).append(finding)
        return grouped

    def is_empty(self) -> bool:
        return not self.findings_by_file and not self.ai_narratives_by_file


@dataclass(frozen=True)
class GateDecision:
    fail: bool
    critical_count: int

    @classmethod
    def from_report(cls, report: AggregateReport) -> "GateDecision":
        count = report.critical_count
        return cls(fail=count > 0, critical_count=count)
