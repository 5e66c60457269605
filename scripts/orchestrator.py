"""
orchestrator.py — Review every selected stack over the PR's changed files.

For each stack: keep the changed files it accepts (removed files never
count), cap the batch, then per file fetch the content at the head ref,
run the pattern rules, and, when the diff is big enough, ask the AI for
a second opinion. A failed fetch degrades that one file to "no findings";
only failing to list the PR's files at all aborts the run.

The gate is decided from pattern findings alone: AI narratives are shown
to humans but never fail the check.
"""

from config_loader import Settings
from models import AggregateReport, CollaboratorError, FileReviewResult, GateDecision
from pattern_evaluator import evaluate, split_by_severity
from stack_profiles import StackProfile


class ReviewOrchestrator:
    def __init__(self, settings: Settings, source, requester):
        self.settings = settings
        self.source = source
        self.requester = requester

    def discover_changed_files(self) -> list[dict]:
        """List the PR's files. A CollaboratorError here is fatal and propagates."""
        files = self.source.fetch_changed_files(self.settings.pr_number)
        print(f"Changed files: {len(files)}")
        return files

    def resolve_head_ref(self) -> str:
        if self.settings.head_ref:
            return self.settings.head_ref
        try:
            return self.source.fetch_pull_request(self.settings.pr_number).get("head_sha") or ""
        except CollaboratorError as e:
            print(f"  WARNING: Could not resolve PR head commit ({e}); reading default branch")
            return ""

    def files_for(self, profile: StackProfile, changed_files: list[dict]) -> list[dict]:
        """Changed files this stack reviews, capped at its batch limit."""
        eligible = [
            f for f in changed_files
            if f.get("status") != "removed" and profile.accepts(f.get("path", ""))
        ]
        cap = self.settings.max_files or profile.max_files
        if len(eligible) > cap:
            print(f"  {profile.title}: reviewing first {cap} of {len(eligible)} files")
        return eligible[:cap]

    def review_file(self, profile: StackProfile, changed_file: dict, head_ref: str) -> FileReviewResult:
        path = changed_file["path"]
        try:
            content = self.source.fetch_file_content(path, head_ref)
        except CollaboratorError as e:
            print(f"    ERROR: Could not fetch {path}: {e}")
            return FileReviewResult(file_path=path, stack=profile.name)

        findings = evaluate(profile, path, content)
        critical, suggestions = split_by_severity(findings)
        print(f"    {path}: {len(critical)} critical, {len(suggestions)} suggestions")

        narrative = ""
        patch = changed_file.get("patch") or ""
        if self.requester.enabled and len(patch) > self.settings.ai_min_patch_chars:
            narrative = self.requester.request_review(profile, path, patch)
            if narrative:
                print(f"    AI analysis added for {path}")

        return FileReviewResult(
            file_path=path,
            stack=profile.name,
            findings=tuple(findings),
            ai_narrative=narrative,
        )

    def run(self, profiles: list[StackProfile], changed_files: list[dict] | None = None) -> AggregateReport:
        if changed_files is None:
            changed_files = self.discover_changed_files()

        if not self.requester.enabled:
            print("WARNING: ANTHROPIC_API_KEY not set — AI deep analysis disabled, pattern checks only")

        report = AggregateReport(stacks=[p.name for p in profiles])
        batches = [(profile, self.files_for(profile, changed_files)) for profile in profiles]
        if not any(files for _, files in batches):
            print("  No reviewable files for the selected stacks")
            return report

        head_ref = self.resolve_head_ref()
        for profile, files in batches:
            if not files:
                print(f"  {profile.title}: no matching files")
                continue
            print(f"  {profile.title}: {len(files)} file(s) to review")
            for changed_file in files:
                report.add(self.review_file(profile, changed_file, head_ref))

        return report


def gate(report: AggregateReport) -> GateDecision:
    """Fail iff any pattern rule produced a critical finding."""
    return GateDecision.from_report(report)
