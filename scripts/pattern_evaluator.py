"""
pattern_evaluator.py — Run a stack's rule table over one file.

evaluate() is a pure function of (profile, file_path, content): no I/O,
no state carried between rules or lines. The same input always yields
the same Finding sequence, in line order and, within a line, in the
profile's rule order.
"""

import re

from models import Finding, Rule, fill
from stack_profiles import StackProfile


def _is_skipped_line(stripped: str, comment_prefixes: tuple[str, ...]) -> bool:
    return not stripped or stripped.startswith(comment_prefixes)


def _window_text(lines: list[str], idx: int, rule: Rule) -> str:
    start = max(0, idx - rule.lookback)
    return "\n".join(lines[start:idx + rule.window + 1])


def evaluate_rule(rule: Rule, lines: list[str], idx: int, file_path: str) -> Finding | None:
    """Apply one rule at one line. Returns the Finding or None."""
    line = lines[idx]
    match = re.search(rule.pattern, line)
    if match is None:
        return None
    if rule.unless and re.search(rule.unless, line):
        return None

    captured = {k: v for k, v in match.groupdict().items() if v is not None}
    escaped = {k: re.escape(v) for k, v in captured.items()}

    if rule.requires or rule.forbids:
        window = _window_text(lines, idx, rule)
        if rule.requires and not re.search(fill(rule.requires, escaped), window):
            return None
        if rule.forbids and re.search(fill(rule.forbids, escaped), window):
            return None

    return Finding(
        file_path=file_path,
        line=idx + 1,
        severity=rule.severity,
        category=rule.category,
        message=fill(rule.message, captured),
        priority=rule.priority,
        rule_id=rule.id,
    )


def evaluate(profile: StackProfile, file_path: str, content: str) -> list[Finding]:
    """Run every rule of ``profile`` against ``content``.

    Excluded paths (vendor, build output, tests) return no findings at all,
    whatever the content. Blank lines and lines that open with a comment
    marker are skipped. Every rule that fires is kept: a line may carry a
    critical finding and several suggestions at once.
    """
    if profile.is_excluded(file_path):
        return []

    lines = content.replace("\r\n", "\n").split("\n")
    file_rules = [
        rule for rule in profile.rules
        if not rule.file_requires or re.search(rule.file_requires, content)
    ]

    findings: list[Finding] = []
    for idx, line in enumerate(lines):
        if _is_skipped_line(line.strip(), profile.comment_prefixes):
            continue
        for rule in file_rules:
            finding = evaluate_rule(rule, lines, idx, file_path)
            if finding is not None:
                findings.append(finding)
    return findings


def split_by_severity(findings: list[Finding]) -> tuple[list[Finding], list[Finding]]:
    """Split into (critical, suggestions), preserving order."""
    critical = [f for f in findings if f.is_critical]
    suggestions = [f for f in findings if not f.is_critical]
    return critical, suggestions
