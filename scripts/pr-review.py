#!/usr/bin/env python3
"""
pr-review.py — Review a pull request across its stacks and gate the check.

Usage: pr-review.py [LANGUAGES]

LANGUAGES is "auto" (default) or a comma-separated list of stack names
(react, laravel, swift, or their aliases frontend, server-web, mobile).
It overrides REVIEW_AGENT_LANGUAGES / the project config.

Exit codes: 0 clean, 1 critical findings, 2 configuration error or the
PR's changed files could not be listed.
"""

import json
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
import dispatcher
from ai_requester import AIRequester
from config_loader import Settings, load_config, load_settings
from github_client import GitHubClient
from models import AggregateReport, CollaboratorError, ConfigurationError, GateDecision
from orchestrator import ReviewOrchestrator, gate
from report_composer import render

EXIT_CLEAN = 0
EXIT_CRITICAL = 1
EXIT_ERROR = 2


def write_result(settings: Settings, report: AggregateReport, decision: GateDecision,
                 environ: dict | None = None) -> dict:
    """Write the JSON run summary and, inside Actions, the step outputs."""
    env = os.environ if environ is None else environ
    result = {
        "gate": "fail" if decision.fail else "pass",
        "critical_count": decision.critical_count,
        "stacks": report.stacks,
        "files": {
            path: {
                "critical": sum(1 for f in report.findings_by_file.get(path, []) if f.is_critical),
                "suggestions": sum(1 for f in report.findings_by_file.get(path, []) if not f.is_critical),
                "ai_analysis": path in report.ai_narratives_by_file,
            }
            for path in report.files_reviewed
        },
        "dry_run": settings.dry_run,
    }
    try:
        Path(settings.result_path).write_text(json.dumps(result, indent=2))
    except OSError as e:
        print(f"WARNING: Could not write {settings.result_path}: {e}")

    output_file = env.get("GITHUB_OUTPUT", "")
    if output_file:
        with open(output_file, "a") as f:
            f.write(f"critical_count={decision.critical_count}\n")
            f.write(f"gate={result['gate']}\n")
    return result


def publish(settings: Settings, client: GitHubClient, report: AggregateReport, body: str,
            environ: dict | None = None) -> None:
    env = os.environ if environ is None else environ
    if not report.files_reviewed:
        print("No files were reviewed. Nothing to post.")
        return

    if settings.dry_run:
        print("[DRY RUN] Would post review comment:")
        print(body)
        summary_file = env.get("GITHUB_STEP_SUMMARY", "")
        if summary_file:
            with open(summary_file, "a") as f:
                f.write("\n## Code Review (Dry Run)\n\n")
                f.write(f"- Stacks: {', '.join(report.stacks)}\n")
                f.write(f"- Files reviewed: {len(report.files_reviewed)}\n")
                f.write(f"- Critical issues: {report.critical_count}\n")
        return

    try:
        client.publish_comment(settings.pr_number, body)
        print(f"Posted review comment on PR #{settings.pr_number}")
    except CollaboratorError as e:
        print(f"ERROR: Could not post review comment: {e}")


def main(argv: list[str] | None = None, environ: dict | None = None,
         client: GitHubClient | None = None, requester: AIRequester | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    env = dict(os.environ if environ is None else environ)
    if args and args[0].strip():
        env["REVIEW_AGENT_LANGUAGES"] = args[0]

    print("=== Review Agent: PR Review ===")
    try:
        settings = load_settings(load_config(env), env)
        dispatcher.validate(settings.languages, settings.default_stack)
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        return EXIT_ERROR

    print(f"Repository: {settings.repository}")
    print(f"PR: #{settings.pr_number}")
    print(f"Languages: {settings.languages}")
    print(f"Dry run: {settings.dry_run}")

    client = client or GitHubClient(settings.repository)
    requester = requester or AIRequester(settings.api_key, settings.model, settings.ai_pacing_seconds)
    orchestrator = ReviewOrchestrator(settings, client, requester)

    try:
        changed_files = orchestrator.discover_changed_files()
    except CollaboratorError as e:
        print(f"ERROR: {e}")
        return EXIT_ERROR

    profiles = dispatcher.select(
        settings.languages, [f.get("path", "") for f in changed_files], settings.default_stack,
    )
    print(f"Selected stacks: {', '.join(p.name for p in profiles)}")

    report = orchestrator.run(profiles, changed_files)
    decision = gate(report)
    body = render(report, settings.review_header, settings.mention)

    publish(settings, client, report, body, env)
    write_result(settings, report, decision, env)

    print(f"Files reviewed: {len(report.files_reviewed)}")
    print(f"Critical issues: {decision.critical_count}")
    if decision.fail:
        print(f"=== Review Complete: FAILED ({decision.critical_count} critical) ===")
        return EXIT_CRITICAL
    print("=== Review Complete: PASSED ===")
    return EXIT_CLEAN


if __name__ == "__main__":
    sys.exit(main())
