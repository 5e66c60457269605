"""
report_composer.py — Render an AggregateReport as one PR comment.

Section order is fixed: header with the critical count, critical issues by
file, AI deep analysis by file (collapsed), suggestions by category then
priority, legend. Empty sections are left out entirely; with no critical
findings the header line says so instead.
"""

from models import PRIORITY_ORDER, AggregateReport, ConfigurationError, Finding
import stack_profiles

PRIORITY_ICONS = {
    "high": "⚠️",
    "medium": "\U0001f538",
    "low": "\U0001f4ad",
}


def _plural(count: int, word: str, plural: str = "") -> str:
    return f"{count} {word if count == 1 else (plural or word + 's')}"


def _stack_titles(names: list[str]) -> list[str]:
    titles = []
    for name in names:
        try:
            titles.append(stack_profiles.resolve(name).title)
        except ConfigurationError:
            titles.append(name)
    return titles


def sort_categories(grouped: dict[str, list[Finding]]) -> list[str]:
    """Categories with any high-priority item first, then medium, then low-only.

    Ties keep first-appearance order.
    """
    def best_tier(category: str) -> int:
        return min(PRIORITY_ORDER.get(f.priority, 1) for f in grouped[category])

    return sorted(grouped, key=best_tier)


def render_critical(report: AggregateReport) -> list[str]:
    grouped = report.critical_by_file()
    if not grouped:
        return []
    parts = ["### ⛔ Critical Issues", ""]
    for path, findings in grouped.items():
        parts.append(f"#### \U0001f4c4 {path}")
        for f in findings:
            parts.append(f"- **Line {f.line}** [{f.category}]: {f.message}")
        parts.append("")
    return parts


def render_ai(report: AggregateReport) -> list[str]:
    if not report.ai_narratives_by_file:
        return []
    parts = ["### \U0001f9e0 AI Deep Analysis", ""]
    for path, narrative in report.ai_narratives_by_file.items():
        parts.append(f"<details><summary>\U0001f4c4 {path}</summary>")
        parts.append("")
        parts.append(narrative.strip())
        parts.append("")
        parts.append("</details>")
        parts.append("")
    return parts


def render_suggestions(report: AggregateReport) -> list[str]:
    grouped = report.suggestions_by_category()
    if not grouped:
        return []
    total = sum(len(items) for items in grouped.values())
    parts = [
        "### \U0001f4a1 Best Practice Suggestions",
        "",
        f"<details><summary>{_plural(total, 'suggestion')} in {_plural(len(grouped), 'category', 'categories')}</summary>",
        "",
    ]
    for category in sort_categories(grouped):
        parts.append(f"#### {category}")
        parts.append("")
        for tier in ("high", "medium", "low"):
            for f in grouped[category]:
                if (f.priority if f.priority in PRIORITY_ICONS else "medium") == tier:
                    parts.append(f"- {PRIORITY_ICONS[tier]} **{f.file_path}:{f.line}** - {f.message}")
        parts.append("")
    parts.append("</details>")
    parts.append("")
    return parts


def render(report: AggregateReport, header: str = "## \U0001f916 AI Code Review",
           mention: str = "@ai-reviewer") -> str:
    """Build the consolidated review comment."""
    parts = [header, ""]

    titles = _stack_titles(report.stacks)
    if titles:
        parts.append(f"*Stacks reviewed: {', '.join(titles)} ({_plural(len(report.files_reviewed), 'file')})*")
        parts.append("")

    critical_count = report.critical_count
    if critical_count:
        parts.append(
            f"⛔ **Found {_plural(critical_count, 'critical issue')} that must be fixed before merge**"
        )
    else:
        parts.append("✅ **No critical issues detected (0 critical issues).** Code review passed automated checks.")
    parts.append("")

    parts.extend(render_critical(report))
    parts.extend(render_ai(report))
    parts.extend(render_suggestions(report))

    parts.append("---")
    parts.append(
        f"**Priority Legend:** {PRIORITY_ICONS['high']} High | "
        f"{PRIORITY_ICONS['medium']} Medium | {PRIORITY_ICONS['low']} Low"
    )
    parts.append("")
    parts.append(f"*\U0001f4ac Ask questions with `{mention} [your question]` in comments*")
    return "\n".join(parts)
