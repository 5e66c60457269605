"""Tests for report_composer.py — section order, empty sections, suggestion sorting, completeness."""

from models import AggregateReport, FileReviewResult, Finding
from report_composer import render, sort_categories


def _finding(path, line, severity="suggestion", category="Quality", message="msg", priority="medium"):
    return Finding(file_path=path, line=line, severity=severity, category=category,
                   message=message, priority=priority)


def _report(*results, stacks=("react",)):
    report = AggregateReport(stacks=list(stacks))
    for result in results:
        report.add(result)
    return report


class TestRender:
    def test_clean_report_has_no_section_headers(self):
        report = _report(FileReviewResult("src/App.tsx", "react"))
        body = render(report)

        assert body.startswith("## \U0001f916 AI Code Review")
        assert "No critical issues detected" in body
        assert "### " not in body
        assert "Priority Legend" in body
        assert "`@ai-reviewer [your question]`" in body

    def test_sections_in_fixed_order(self):
        report = _report(
            FileReviewResult("src/App.tsx", "react", findings=(
                _finding("src/App.tsx", 3, severity="critical", category="Security", message="eval is unsafe"),
                _finding("src/App.tsx", 5, message="use const"),
            ), ai_narrative="CRITICAL:\n- Line 9: race"),
        )
        body = render(report)

        critical = body.index("### ⛔ Critical Issues")
        ai = body.index("### \U0001f9e0 AI Deep Analysis")
        suggestions = body.index("### \U0001f4a1 Best Practice Suggestions")
        legend = body.index("**Priority Legend:**")
        assert critical < ai < suggestions < legend
        assert "⛔ **Found 1 critical issue that must be fixed before merge**" in body
        assert "No critical issues detected" not in body

    def test_critical_grouped_by_file(self):
        report = _report(
            FileReviewResult("a.js", "react", findings=(
                _finding("a.js", 1, severity="critical", category="Security", message="first"),
                _finding("a.js", 9, severity="critical", category="React", message="second"),
            )),
            FileReviewResult("b.js", "react", findings=(
                _finding("b.js", 4, severity="critical", category="Security", message="third"),
            )),
        )
        body = render(report)

        assert "Found 3 critical issues" in body
        assert body.count("#### \U0001f4c4 a.js") == 1
        assert "- **Line 1** [Security]: first" in body
        assert "- **Line 9** [React]: second" in body
        assert body.index("#### \U0001f4c4 a.js") < body.index("third")

    def test_ai_only_report_states_zero_count_and_omits_empty_sections(self):
        report = _report(FileReviewResult("a.js", "react", ai_narrative="Consider memoizing the list."))
        body = render(report)

        assert "<details><summary>\U0001f4c4 a.js</summary>" in body
        assert "Consider memoizing the list." in body
        assert "Critical Issues" not in body
        assert "Best Practice Suggestions" not in body
        assert body.index("0 critical issues") < body.index("### \U0001f9e0 AI Deep Analysis")

    def test_suggestions_grouped_by_category_then_priority(self):
        report = _report(FileReviewResult("a.js", "react", findings=(
            _finding("a.js", 1, category="Style", message="low one", priority="low"),
            _finding("a.js", 2, category="Perf", message="medium one", priority="medium"),
            _finding("a.js", 3, category="Style", message="high one", priority="high"),
        )))
        body = render(report)

        assert body.index("#### Style") < body.index("#### Perf")
        assert body.index("high one") < body.index("low one")
        assert "- ⚠️ **a.js:3** - high one" in body
        assert "- \U0001f4ad **a.js:1** - low one" in body
        assert "- \U0001f538 **a.js:2** - medium one" in body
        assert "3 suggestions in 2 categories" in body

    def test_every_finding_rendered_once(self):
        findings = tuple(
            _finding("a.js", i, severity="critical" if i % 3 == 0 else "suggestion",
                     category=f"Cat{i % 2}", message=f"unique-message-{i}")
            for i in range(1, 10)
        )
        body = render(_report(FileReviewResult("a.js", "react", findings=findings)))
        for f in findings:
            assert body.count(f"unique-message-{f.line}") == 1

    def test_custom_header_and_mention(self):
        body = render(_report(), header="## Review Bot", mention="@bot")
        assert body.startswith("## Review Bot")
        assert "`@bot [your question]`" in body

    def test_lists_stack_titles(self):
        body = render(_report(FileReviewResult("a.php", "laravel"), stacks=("react", "laravel")))
        assert "*Stacks reviewed: React/JavaScript, Laravel/PHP (1 file)*" in body


class TestSortCategories:
    def test_by_best_priority_then_first_seen(self):
        grouped = {
            "A": [_finding("x", 1, priority="low")],
            "B": [_finding("x", 2, priority="medium")],
            "C": [_finding("x", 3, priority="low"), _finding("x", 4, priority="high")],
            "D": [_finding("x", 5, priority="medium")],
        }
        assert sort_categories(grouped) == ["C", "B", "D", "A"]
