"""Tests for pattern_evaluator.py — rule matching, windows, exclusions, determinism."""

import pytest

from models import Rule, SEVERITY_CRITICAL, SEVERITY_SUGGESTION
from pattern_evaluator import evaluate, evaluate_rule, split_by_severity
from stack_profiles import LARAVEL, REACT, SWIFT


def _ids(findings):
    return [f.rule_id for f in findings]


def _critical_ids(findings):
    return [f.rule_id for f in findings if f.is_critical]


# ---------------------------------------------------------------------------
# evaluate — React
# ---------------------------------------------------------------------------

class TestEvaluateReact:
    def test_dangerous_html_is_critical(self):
        findings = evaluate(REACT, "src/App.jsx", "<div dangerouslySetInnerHTML={{ __html: html }} />")
        assert _ids(findings) == ["react-dangerous-html"]
        assert findings[0].severity == SEVERITY_CRITICAL
        assert findings[0].line == 1

    def test_line_numbers_are_one_based(self):
        content = "const a = 1;\n\nconst b = eval(input);\n"
        findings = evaluate(REACT, "src/util.js", content)
        assert [(f.rule_id, f.line) for f in findings] == [("react-eval", 3)]

    def test_crlf_line_endings(self):
        content = "const a = 1;\r\nconst b = eval(input);\r\n"
        findings = evaluate(REACT, "src/util.js", content)
        assert [f.line for f in findings] == [2]

    def test_comment_lines_skipped(self):
        content = "// eval(code) is never called\n/* document.getElementById('x') */\n"
        assert evaluate(REACT, "src/util.js", content) == []

    def test_blank_file(self):
        assert evaluate(REACT, "src/empty.js", "") == []

    def test_multiple_rules_on_one_line_all_kept(self):
        findings = evaluate(REACT, "src/Widget.jsx", "<div onClick={() => eval(code)}>")
        assert _ids(findings) == ["react-eval", "react-inline-handler", "react-clickable-div"]
        assert findings[0].is_critical
        assert not findings[1].is_critical

    def test_effect_without_deps_updating_state(self):
        content = (
            "useEffect(() => {\n"
            "  setCount(count + 1);\n"
            "});\n"
        )
        findings = evaluate(REACT, "src/Counter.jsx", content)
        assert _critical_ids(findings) == ["react-effect-loop"]
        assert "react-effect-no-deps" in _ids(findings)
        assert findings[0].line == 1

    def test_effect_with_deps_is_not_a_loop(self):
        content = (
            "useEffect(() => {\n"
            "  setCount(count + 1);\n"
            "}, [count]);\n"
        )
        findings = evaluate(REACT, "src/Counter.jsx", content)
        assert "react-effect-loop" not in _ids(findings)
        assert "react-effect-no-deps" not in _ids(findings)

    def test_console_message_names_method(self):
        findings = evaluate(REACT, "src/App.js", "console.debug(value);")
        assert len(findings) == 1
        assert findings[0].message.startswith("Remove console.debug before production")

    def test_prefer_const_names_variable(self):
        content = "let total = 0;\nreturn total;\n"
        findings = evaluate(REACT, "src/sum.js", content)
        assert _ids(findings) == ["react-prefer-const"]
        assert "'total'" in findings[0].message
        assert findings[0].priority == "low"

    def test_prefer_const_not_reported_when_reassigned(self):
        content = "let total = 0;\nitems.forEach(i => {\n  total += i;\n});\n"
        findings = evaluate(REACT, "src/sum.js", content)
        assert "react-prefer-const" not in _ids(findings)

    def test_img_without_alt(self):
        assert _ids(evaluate(REACT, "src/Logo.jsx", '<img src={logo} />')) == ["react-img-alt"]
        assert evaluate(REACT, "src/Logo.jsx", '<img src={logo} alt="Logo" />') == []


# ---------------------------------------------------------------------------
# evaluate — Laravel
# ---------------------------------------------------------------------------

class TestEvaluateLaravel:
    def test_debug_helper_is_critical(self):
        findings = evaluate(LARAVEL, "app/Http/Controllers/UserController.php", "    dd($user);")
        assert _ids(findings) == ["laravel-debug-helper"]
        assert findings[0].message == "Debug function dd() must be removed before merge"

    def test_method_named_dump_not_flagged(self):
        assert evaluate(LARAVEL, "app/Support/Report.php", "    $this->dump($rows);") == []

    def test_mass_assignment(self):
        findings = evaluate(LARAVEL, "app/Http/Controllers/UserController.php",
                            "        User::create($request->all());")
        assert _critical_ids(findings) == ["laravel-mass-assignment"]

    def test_hash_comment_skipped(self):
        assert evaluate(LARAVEL, "app/Models/User.php", "# dd($x);") == []

    def test_route_model_binding_only_in_controllers(self):
        body = (
            "    public function show($id)\n"
            "    {\n"
            "        $user = User::find($id);\n"
            "        return view('users.show', compact('user'));\n"
            "    }\n"
        )
        controller = "class UserController extends Controller\n{\n" + body + "}\n"
        service = "class UserService\n{\n" + body + "}\n"

        assert "laravel-route-model-binding" in _ids(
            evaluate(LARAVEL, "app/Http/Controllers/UserController.php", controller))
        assert "laravel-route-model-binding" not in _ids(
            evaluate(LARAVEL, "app/Services/UserService.php", service))

    def test_query_in_loop(self):
        content = (
            "foreach ($ids as $id) {\n"
            "    $order = Order::find($id);\n"
            "}\n"
        )
        findings = evaluate(LARAVEL, "app/Jobs/Sync.php", content)
        assert _ids(findings) == ["laravel-query-in-loop"]
        assert findings[0].priority == "high"


# ---------------------------------------------------------------------------
# evaluate — Swift
# ---------------------------------------------------------------------------

class TestEvaluateSwift:
    def test_force_try_is_the_only_finding(self):
        content = "import Foundation\n\nlet data = try! Data(contentsOf: url)\n"
        findings = evaluate(SWIFT, "App/Loader.swift", content)
        assert [(f.rule_id, f.line, f.severity) for f in findings] == [
            ("swift-force-try", 3, SEVERITY_CRITICAL),
        ]

    def test_force_cast(self):
        findings = evaluate(SWIFT, "App/Cells.swift", "let cell = view as! CustomCell")
        assert _ids(findings) == ["swift-force-cast"]

    def test_force_unwrap_is_suggestion(self):
        findings = evaluate(SWIFT, "App/Profile.swift", "let name = user.name!")
        assert _ids(findings) == ["swift-force-unwrap"]
        assert findings[0].severity == SEVERITY_SUGGESTION

    def test_not_equal_is_not_unwrap(self):
        assert evaluate(SWIFT, "App/Compare.swift", "if a != b {") == []

    def test_todo_after_code(self):
        findings = evaluate(SWIFT, "App/Feed.swift", "let limit = 20 // TODO tune")
        assert _ids(findings) == ["swift-todo"]
        assert findings[0].message == "Address TODO before merge"


# ---------------------------------------------------------------------------
# Exclusions and determinism
# ---------------------------------------------------------------------------

class TestExclusions:
    @pytest.mark.parametrize("profile,path", [
        (REACT, "node_modules/lib/index.js"),
        (REACT, "dist/bundle.js"),
        (REACT, "src/App.test.jsx"),
        (REACT, "src/__tests__/App.js"),
        (LARAVEL, "vendor/package/src/Thing.php"),
        (LARAVEL, "resources/views/home.blade.php"),
        (LARAVEL, "tests/Feature/UserTest.php"),
        (SWIFT, "Pods/Alamofire/Session.swift"),
        (SWIFT, "App/AppTests/LoaderTests.swift"),
    ])
    def test_excluded_paths_yield_nothing(self, profile, path):
        content = "eval(x); dd($x); let y = try! f()\n" * 3
        assert evaluate(profile, path, content) == []


class TestDeterminism:
    def test_same_input_same_findings(self):
        content = (
            "class Old extends React.Component {}\n"
            "useEffect(() => {\n"
            "  fetch('/api').then(r => setData(r));\n"
            "});\n"
            "console.log(data && data.items);\n"
        )
        first = evaluate(REACT, "src/Old.jsx", content)
        second = evaluate(REACT, "src/Old.jsx", content)
        assert first == second
        assert first


# ---------------------------------------------------------------------------
# evaluate_rule / split_by_severity
# ---------------------------------------------------------------------------

class TestEvaluateRule:
    def test_window_includes_following_lines(self):
        rule = Rule(id="t", pattern=r"open\(", severity=SEVERITY_CRITICAL, category="c",
                    message="m", window=2, forbids=r"close\(")
        lines = ["open(f)", "read(f)", "close(f)"]
        assert evaluate_rule(rule, lines, 0, "a.js") is None
        assert evaluate_rule(rule, ["open(f)", "read(f)", "", "close(f)"], 0, "a.js") is not None

    def test_lookback_includes_preceding_lines(self):
        rule = Rule(id="t", pattern=r"x", severity=SEVERITY_SUGGESTION, category="c",
                    message="m", lookback=1, requires=r"guard")
        assert evaluate_rule(rule, ["guard", "x"], 1, "a.js") is not None
        assert evaluate_rule(rule, ["guard", "", "x"], 2, "a.js") is None

    def test_unless_suppresses(self):
        rule = Rule(id="t", pattern=r"foo", severity=SEVERITY_SUGGESTION, category="c",
                    message="m", unless=r"bar")
        assert evaluate_rule(rule, ["foo bar"], 0, "a.js") is None

    def test_captures_fill_message(self):
        rule = Rule(id="t", pattern=r"call (?P<fn>\w+)", severity=SEVERITY_SUGGESTION,
                    category="c", message="called {fn} {missing}")
        finding = evaluate_rule(rule, ["call run"], 0, "a.js")
        assert finding.message == "called run {missing}"

    def test_rule_target(self):
        assert Rule(id="t", pattern="x", severity="critical", category="c", message="m").target == "line"
        assert Rule(id="t", pattern="x", severity="critical", category="c", message="m",
                    window=3).target == "window"


class TestSplitBySeverity:
    def test_preserves_order(self):
        findings = evaluate(REACT, "src/Widget.jsx", "<div onClick={() => eval(code)}>")
        critical, suggestions = split_by_severity(findings)
        assert _ids(critical) == ["react-eval"]
        assert _ids(suggestions) == ["react-inline-handler", "react-clickable-div"]
