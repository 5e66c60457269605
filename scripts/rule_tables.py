"""
rule_tables.py — Pattern rules for each supported stack.

Rules are evaluated in declaration order against every non-blank,
non-comment line of a changed file (see pattern_evaluator.py). Critical
rules fail the check run; suggestions are reported by category and
priority only.

Patterns are deliberately shallow: line and window regexes, no parsing.
Anything deeper is left to the AI pass.
"""

from models import SEVERITY_CRITICAL as CRITICAL, SEVERITY_SUGGESTION as SUGGESTION, Rule

# Reassignment of a captured `let` name on any later line of the window.
_REASSIGNED = (
    r"\n[^\n]*(?:\b{name}\s*(?:[-+*/%&|^]|\*\*|\?\?|\|\||&&)?=|\b{name}\s*(?:\+\+|--)|(?:\+\+|--){name}\b)"
)


# ---------------------------------------------------------------------------
# React / JavaScript / TypeScript
# ---------------------------------------------------------------------------

REACT_RULES = (
    # Critical
    Rule(
        id="react-dangerous-html",
        pattern=r"dangerouslySetInnerHTML",
        severity=CRITICAL,
        category="\U0001f512 Security",
        message="XSS risk: dangerouslySetInnerHTML can inject malicious scripts. Sanitize HTML with DOMPurify",
    ),
    Rule(
        id="react-direct-dom",
        pattern=r"document\.(?:getElementById|querySelector|getElementsBy)",
        severity=CRITICAL,
        category="\u269b\ufe0f React",
        message="Avoid direct DOM manipulation in React. Use refs (useRef) or state instead",
    ),
    Rule(
        id="react-effect-loop",
        pattern=r"useEffect\s*\(",
        severity=CRITICAL,
        category="\U0001f41b Infinite Loop",
        message="Potential infinite loop: useEffect updates state without a dependency array",
        window=14,
        requires=r"set[A-Z]\w*\s*\(",
        forbids=r"\]\s*\)",
    ),
    Rule(
        id="react-timer-leak",
        pattern=r"setTimeout|setInterval",
        severity=CRITICAL,
        category="\U0001f4a7 Memory Leak",
        message="Timer without cleanup. Return a cleanup function: () => clearTimeout(id)",
        lookback=10,
        window=9,
        requires=r"useEffect",
        forbids=r"clearTimeout|clearInterval",
    ),
    Rule(
        id="react-async-effect",
        pattern=r"useEffect\s*\(\s*async",
        severity=CRITICAL,
        category="\U0001f41b Hook Error",
        message="useEffect cannot be async directly. Create an async function inside and call it",
    ),
    Rule(
        id="react-props-mutation",
        pattern=r"\bprops\.\w+\s*=(?!=)",
        severity=CRITICAL,
        category="\u269b\ufe0f React",
        message="Props are read-only. Never mutate props directly",
    ),
    Rule(
        id="react-eval",
        pattern=r"\beval\s*\(",
        severity=CRITICAL,
        category="\U0001f512 Security",
        message="eval() is dangerous and can execute malicious code. Find an alternative approach",
    ),
    Rule(
        id="react-bind-in-render",
        pattern=r"(?:onClick|onChange)\s*=\s*\{[^}]*\.bind\(this",
        severity=CRITICAL,
        category="\u26a1 Performance",
        message=".bind() in render creates a new function each time. Bind in the constructor or use arrow functions",
    ),
    Rule(
        id="react-conditional-hook",
        pattern=r"\b(?P<hook>useState|useEffect|useCallback|useMemo|useRef|useContext)\s*\(",
        severity=CRITICAL,
        category="\U0001fa9d Hooks",
        message="Hooks cannot be called conditionally ({hook}). Call hooks at the top level of the component",
        lookback=5,
        requires=r"\bif\s*\(|\?\s*\(",
    ),
    Rule(
        id="react-state-mutation",
        pattern=r"\bstate\.\w+\s*=(?!=)",
        severity=CRITICAL,
        category="\u269b\ufe0f React",
        message="Never mutate state directly. Use setState or the state setter function",
    ),
    # Suggestions
    Rule(
        id="react-class-component",
        pattern=r"class\s+\w+\s+extends\s+(?:React\.)?(?:Pure)?Component\b",
        severity=SUGGESTION,
        category="\u269b\ufe0f Modern React",
        message="Consider functional components with hooks instead of class components (React 16.8+)",
        priority="high",
    ),
    Rule(
        id="react-effect-no-deps",
        pattern=r"useEffect\s*\(\s*\(\s*\)\s*=>",
        severity=SUGGESTION,
        category="\U0001fa9d Hooks",
        message="useEffect without a dependency array runs on every render. Add [] for mount-only or list the dependencies",
        priority="high",
        window=14,
        forbids=r"\}\s*,\s*\[",
    ),
    Rule(
        id="react-inline-handler",
        pattern=r"\bon[A-Z]\w*\s*=\s*\{(?:\(\)|.*=>)",
        severity=SUGGESTION,
        category="\u26a1 Performance",
        message="Inline function creates a new reference on each render. Use useCallback or a stable reference",
    ),
    Rule(
        id="react-missing-key",
        pattern=r"\.map\s*\(",
        severity=SUGGESTION,
        category="\u269b\ufe0f React",
        message="Missing key prop in list. Add a unique key to help React identify items",
        priority="high",
        window=4,
        requires=r"<[A-Z]",
        forbids=r"key\s*=",
    ),
    Rule(
        id="react-index-key",
        pattern=r"key\s*=\s*\{[^}]*\bindex\}",
        severity=SUGGESTION,
        category="\u269b\ufe0f React",
        message="Avoid using the array index as key. Use a unique ID if items can be reordered or filtered",
    ),
    Rule(
        id="react-console-log",
        pattern=r"console\.(?P<method>log|debug|info)\s*\(",
        severity=SUGGESTION,
        category="\U0001f9f9 Code Quality",
        message="Remove console.{method} before production. Use a logging library or drop the debug statement",
    ),
    Rule(
        id="react-effect-cleanup",
        pattern=r"\buseEffect\b",
        severity=SUGGESTION,
        category="\U0001f41b Memory Leaks",
        message="useEffect with async work should return a cleanup function to prevent memory leaks",
        priority="high",
        window=19,
        requires=r"\b(?:fetch|axios\.\w+|setTimeout|setInterval|subscribe)\s*\(",
        forbids=r"return\s*\(\s*\)\s*=>|return\s+function",
    ),
    Rule(
        id="react-optional-chaining",
        pattern=r"\b\w+\s*&&\s*\w+\.\w+",
        severity=SUGGESTION,
        category="\U0001f3af Modern JS",
        message="Use optional chaining (?.) instead of && for safer property access",
        priority="low",
    ),
    Rule(
        id="react-unhandled-fetch",
        pattern=r"\bfetch\s*\(|\baxios\.\w+\s*\(",
        severity=SUGGESTION,
        category="\U0001f41b Error Handling",
        message="API call without error handling. Add try/catch or .catch() to handle failures",
        priority="high",
        window=9,
        forbids=r"catch|try",
    ),
    Rule(
        id="react-chained-array-ops",
        pattern=r"\.(?:filter|map|reduce|sort)\s*\(.*\)\s*\.\s*(?:filter|map|reduce|sort)\b",
        severity=SUGGESTION,
        category="\u26a1 Performance",
        message="Chained array operations in render. Consider useMemo to cache the computed value",
    ),
    Rule(
        id="react-eager-route-import",
        pattern=r"import\s+\w+\s+from\s+['\"].*/(?:pages|routes|views)/",
        severity=SUGGESTION,
        category="\u26a1 Performance",
        message="Consider lazy loading route components with React.lazy() to reduce the initial bundle size",
        unless=r"React\.lazy|\blazy\(",
    ),
    Rule(
        id="react-img-alt",
        pattern=r"<img\s",
        severity=SUGGESTION,
        category="\u267f Accessibility",
        message="Images must have alt text for accessibility. Add a descriptive alt attribute",
        priority="high",
        unless=r"\balt\s*=",
    ),
    Rule(
        id="react-prefer-const",
        pattern=r"^\s*let\s+(?P<name>\w+)\s*=",
        severity=SUGGESTION,
        category="\U0001f3af Modern JS",
        message="Variable '{name}' is never reassigned. Use 'const' instead of 'let'",
        priority="low",
        window=29,
        forbids=_REASSIGNED,
    ),
    Rule(
        id="react-clickable-div",
        pattern=r"<div\s+(?:onClick|role=[\"']button)",
        severity=SUGGESTION,
        category="\u267f Accessibility",
        message="Use a semantic <button> instead of a <div> with onClick for better accessibility",
    ),
    Rule(
        id="react-form-submit",
        pattern=r"<form\b",
        severity=SUGGESTION,
        category="\U0001f41b Forms",
        message="Form without an onSubmit handler. Add one and call preventDefault() to control submission",
        unless=r"onSubmit",
        window=4,
        forbids=r"onSubmit",
    ),
)


# ---------------------------------------------------------------------------
# Laravel / PHP
# ---------------------------------------------------------------------------

LARAVEL_RULES = (
    # Critical
    Rule(
        id="laravel-debug-helper",
        pattern=r"(?<!->)(?<!::)(?<!\$)\b(?P<fn>dd|ddd|dump)\s*\(",
        severity=CRITICAL,
        category="\U0001f50d Debug Code",
        message="Debug function {fn}() must be removed before merge",
    ),
    Rule(
        id="laravel-raw-sql-concat",
        pattern=r"(?:DB::raw|->(?:whereRaw|selectRaw|orderByRaw|havingRaw))\([^)]*['\"][^'\"]*\$",
        severity=CRITICAL,
        category="\U0001f512 Security",
        message="SQL injection risk: variable concatenated into a raw query. Use parameter binding with ?",
        requires=r"['\"].*\..*\$|\$.*\..*['\"]",
    ),
    Rule(
        id="laravel-raw-sql-interpolation",
        pattern=r"DB::(?:select|statement|insert|update|delete|unprepared)\s*\(\s*\"[^\"]*\$\w",
        severity=CRITICAL,
        category="\U0001f512 Security",
        message="SQL injection risk: variable interpolated into a raw SQL string. Pass bindings as the second argument",
    ),
    Rule(
        id="laravel-mass-assignment",
        pattern=(
            r"(?:::(?:create|forceCreate)|->(?:fill|update))\s*\(\s*\$request\s*->\s*all\s*\(\s*\)"
        ),
        severity=CRITICAL,
        category="\U0001f512 Security",
        message="Mass assignment vulnerability: $request->all() allows any field. Use validated() or only()",
    ),
    Rule(
        id="laravel-command-injection",
        pattern=r"(?<!->)(?<!::)\b(?P<fn>exec|shell_exec|system|passthru|proc_open|popen)\s*\([^)]*\$",
        severity=CRITICAL,
        category="\U0001f512 Security",
        message="Command injection risk: {fn}() called with a variable. Use escapeshellarg() or Process with an argument array",
    ),
    Rule(
        id="laravel-unserialize-input",
        pattern=r"\bunserialize\s*\(\s*\$(?:_GET|_POST|_REQUEST|_COOKIE|request)\b",
        severity=CRITICAL,
        category="\U0001f512 Security",
        message="Unserializing user input allows object injection. Use json_decode() instead",
    ),
    Rule(
        id="laravel-eval",
        pattern=r"(?<!->)\beval\s*\(",
        severity=CRITICAL,
        category="\U0001f512 Security",
        message="eval() executes arbitrary code. Find an alternative approach",
    ),
    # Suggestions
    Rule(
        id="laravel-raw-select",
        pattern=r"DB::select\s*\(\s*['\"]SELECT",
        severity=SUGGESTION,
        category="\U0001f4ca Database",
        message="Consider using the Query Builder or Eloquent instead of raw SQL for better maintainability",
        unless=r"DB::select\s*\(\s*['\"]SELECT[^'\"]*\?",
    ),
    Rule(
        id="laravel-route-model-binding",
        pattern=r"function\s+\w+\s*\([^)]*\$id\s*[,)]",
        severity=SUGGESTION,
        category="\U0001f3af Eloquent",
        message="Use route model binding instead of a manual find($id) for cleaner code",
        window=4,
        requires=r"::find(?:OrFail)?\s*\(\s*\$id\s*\)",
        file_requires=r"Controller",
    ),
    Rule(
        id="laravel-form-request",
        pattern=r"\$request->validate\s*\(\s*\[",
        severity=SUGGESTION,
        category="\u2705 Validation",
        message="Consider Form Request classes for complex validation to keep controllers thin",
        file_requires=r"Controller",
    ),
    Rule(
        id="laravel-unbounded-all",
        pattern=r"\b(?P<model>[A-Z]\w*)::all\s*\(\s*\)",
        severity=SUGGESTION,
        category="\U0001f4ca Database",
        message="{model}::all() loads every row. Use paginate(), chunk() or a constrained query",
    ),
    Rule(
        id="laravel-query-in-loop",
        pattern=r"\bforeach\s*\(",
        severity=SUGGESTION,
        category="\U0001f4ca Database",
        message="Query inside a loop (N+1). Eager load with with() or batch the writes",
        priority="high",
        window=5,
        requires=r"::find\w*\s*\(|::where\s*\(|->(?:save|update|delete)\s*\(",
    ),
    Rule(
        id="laravel-debug-output",
        pattern=r"(?<!->)\b(?P<fn>var_dump|print_r|var_export)\s*\(",
        severity=SUGGESTION,
        category="\U0001f9f9 Code Quality",
        message="Remove {fn}() debug output. Use the Log facade instead",
    ),
    Rule(
        id="laravel-empty-catch",
        pattern=r"catch\s*\([^)]*\)\s*\{\s*\}",
        severity=SUGGESTION,
        category="\U0001f41b Error Handling",
        message="Exception swallowed by an empty catch block. Log or rethrow it",
        priority="high",
    ),
    Rule(
        id="laravel-empty-guarded",
        pattern=r"\$guarded\s*=\s*\[\s*\]",
        severity=SUGGESTION,
        category="\U0001f512 Security",
        message="An empty $guarded disables mass-assignment protection. Declare $fillable instead",
        priority="high",
    ),
)


# ---------------------------------------------------------------------------
# Swift / iOS
# ---------------------------------------------------------------------------

SWIFT_RULES = (
    # Critical
    Rule(
        id="swift-force-try",
        pattern=r"\btry!",
        severity=CRITICAL,
        category="\u26a0\ufe0f Force Try",
        message="Avoid try!: handle errors with do/catch or try?",
    ),
    Rule(
        id="swift-force-cast",
        pattern=r"\bas!",
        severity=CRITICAL,
        category="\u26a0\ufe0f Force Cast",
        message="Avoid as!: use as? with safe handling",
    ),
    # Suggestions
    Rule(
        id="swift-force-unwrap",
        pattern=r"\b(?!try!|as!)\w+!(?!=)",
        severity=SUGGESTION,
        category="Safety",
        message="Avoid force unwrapping (!). Use if let/guard let or nil coalescing",
        priority="high",
        unless=r"!=|^\s*!",
    ),
    Rule(
        id="swift-retain-cycle",
        pattern=r"\{[^}]*\bin\b",
        severity=SUGGESTION,
        category="Memory",
        message="Consider [weak self] in closures to avoid retain cycles",
        unless=r"\{\s*\[.*\]\s*in\b",
        lookback=2,
        window=7,
        requires=r"\bself\.",
        forbids=r"\[(?:weak|unowned)\s+self\]",
        file_requires=r"\bclass\s+\w+",
    ),
    Rule(
        id="swift-main-sync",
        pattern=r"DispatchQueue\.main\.sync\b",
        severity=SUGGESTION,
        category="Concurrency",
        message="DispatchQueue.main.sync deadlocks when called from the main thread. Use async",
        priority="high",
    ),
    Rule(
        id="swift-background-ui",
        pattern=r"\.(?:text|setNeedsLayout|reloadData|setNeedsDisplay)\b",
        severity=SUGGESTION,
        category="Concurrency",
        message="UI updates must run on the main thread (DispatchQueue.main.async)",
        priority="high",
        lookback=5,
        requires=r"DispatchQueue\.global",
    ),
    Rule(
        id="swift-print",
        pattern=r"\bprint\s*\(",
        severity=SUGGESTION,
        category="Cleanliness",
        message="Remove print() or gate it behind #if DEBUG",
        priority="low",
    ),
    Rule(
        id="swift-fatal-error",
        pattern=r"\bfatalError\s*\(",
        severity=SUGGESTION,
        category="Safety",
        message="fatalError() crashes in production. Prefer throwing or a recoverable path",
        priority="low",
    ),
    Rule(
        id="swift-todo",
        pattern=r"\b(?P<tag>TODO|FIXME)\b",
        severity=SUGGESTION,
        category="Maintenance",
        message="Address {tag} before merge",
        priority="low",
    ),
)
