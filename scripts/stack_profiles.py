"""
stack_profiles.py — Registry of supported stacks.

A StackProfile bundles everything one stack needs: which files it owns,
which paths it never looks at (vendor, build output, tests), its ordered
rule table, and the two AI personas (file review and Q&A chat).

Profiles are built once at import time and never mutated. The reserved
name "auto" is not a profile; dispatcher.py handles it.
"""

import re
from dataclasses import dataclass

from models import ConfigurationError, Rule
from rule_tables import LARAVEL_RULES, REACT_RULES, SWIFT_RULES


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Persona:
    system_prompt: str
    temperature: float
    max_tokens: int


@dataclass(frozen=True)
class StackProfile:
    name: str
    title: str
    extensions: tuple[str, ...]
    exclude: str
    rules: tuple[Rule, ...]
    review_persona: Persona
    chat_persona: Persona
    review_instruction: str
    help_examples: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    comment_prefixes: tuple[str, ...] = ("//",)
    max_files: int = 10
    diff_chars: int = 3000
    icon: str = "\U0001f916"

    def is_excluded(self, file_path: str) -> bool:
        return bool(re.search(self.exclude, file_path))

    def matches_extension(self, file_path: str) -> bool:
        return file_path.lower().endswith(self.extensions)

    def accepts(self, file_path: str) -> bool:
        """True when this stack reviews the file: right extension, not an excluded path."""
        return self.matches_extension(file_path) and not self.is_excluded(file_path)


# ---------------------------------------------------------------------------
# Personas
# ---------------------------------------------------------------------------

_FINDINGS_FORMAT = """FORMAT (must follow exactly):
CRITICAL: (definite bugs only, or write "None")
- Line X: [Brief description]

SUGGESTIONS: (optional improvements, or write "None")
- Line X: [Brief description]

If nothing found, respond with:
CRITICAL: None
SUGGESTIONS: None"""

REACT_REVIEW_PERSONA = Persona(
    system_prompt=f"""You are a React/JavaScript expert reviewing a pull request (React 18+, modern hooks).

Focus on:
1. Security: XSS, injection, unsafe HTML
2. Performance: unnecessary re-renders, missing memoization, large bundles
3. Logic errors: infinite loops, race conditions, memory leaks, stale closures
4. Syntax errors and runtime crashes

Do NOT report styling preferences, naming conventions or subjective refactors.
Avoid recommending outdated patterns (class components, componentDidMount) unless the code is legacy.

{_FINDINGS_FORMAT}""",
    temperature=0.1,
    max_tokens=1000,
)

REACT_CHAT_PERSONA = Persona(
    system_prompt="""You are an expert React/JavaScript code reviewer answering questions on a pull request.

Expertise: React 18+ (Suspense, transitions, concurrent rendering), hooks, TypeScript with React,
performance (memoization, lazy loading, code splitting), testing with Jest and React Testing Library,
state management (Context, Zustand, Redux Toolkit), build tools (Vite, Next.js).

Be concise and actionable. Give code examples when they help and explain why, not just what.
Avoid outdated patterns and subjective styling opinions.""",
    temperature=0.5,
    max_tokens=1500,
)

LARAVEL_REVIEW_PERSONA = Persona(
    system_prompt=f"""You are a Laravel/PHP security and correctness expert. Your job is to find ONLY critical bugs.

STRICT RULES:
1. Only report issues you are certain about
2. Focus on: SQL injection, XSS, authentication bypass, mass assignment, data loss, logic errors, syntax errors
3. Do NOT comment on style, naming, formatting or refactoring
4. If you only see partial code and cannot tell whether it is a real issue, do not report it
5. Verify the issue exists in the PROVIDED code, not in assumptions

{_FINDINGS_FORMAT}""",
    temperature=0.1,
    max_tokens=1000,
)

LARAVEL_CHAT_PERSONA = Persona(
    system_prompt="""You are a helpful Laravel/PHP code review assistant.
Answer questions about Laravel best practices, Eloquent, validation, security and performance,
and explain code clearly. Keep responses concise and actionable.""",
    temperature=0.4,
    max_tokens=1000,
)

SWIFT_REVIEW_PERSONA = Persona(
    system_prompt=f"""You are a Swift/iOS expert reviewer (Swift 5.7+, iOS 15+).

Focus on:
1. Safety: force unwraps (!), force casts (as!), force try (try!)
2. Memory: retain cycles in closures; [weak self] where appropriate
3. Concurrency: prefer async/await; UI updates on the main thread
4. API usage: modern Swift, Codable, error handling

Report only definite issues.

{_FINDINGS_FORMAT}""",
    temperature=0.15,
    max_tokens=900,
)

SWIFT_CHAT_PERSONA = Persona(
    system_prompt="""You are a senior iOS (Swift) engineer and code reviewer.
Focus on correctness, safety, concurrency, memory management and platform best practices.
Be concise and actionable. Prefer modern Swift (5.7+) and async/await.""",
    temperature=0.4,
    max_tokens=1200,
)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

REACT = StackProfile(
    name="react",
    title="React/JavaScript",
    extensions=(".js", ".jsx", ".ts", ".tsx"),
    exclude=(
        r"(^|/)(node_modules|dist|build|coverage|__tests__)/"
        r"|\.min\.js$"
        r"|\.(test|spec)\.[jt]sx?$"
    ),
    rules=REACT_RULES,
    review_persona=REACT_REVIEW_PERSONA,
    chat_persona=REACT_CHAT_PERSONA,
    review_instruction=(
        "Review ONLY the changed lines. Focus on React 18+ patterns, hooks best practices "
        "and performance. Report only definite bugs."
    ),
    help_examples=(
        "explain this hook pattern",
        "how can I improve performance?",
        "is this the best way to handle state?",
        "what's wrong with this useEffect?",
    ),
    aliases=("frontend", "javascript", "typescript"),
    comment_prefixes=("//", "/*", "*"),
    max_files=10,
    diff_chars=3500,
    icon="\u269b\ufe0f",
)

LARAVEL = StackProfile(
    name="laravel",
    title="Laravel/PHP",
    extensions=(".php",),
    exclude=(
        r"(^|/)(vendor|node_modules|storage|bootstrap/cache)/"
        r"|\.blade\.php$"
        r"|(^|/)[Tt]ests?/"
        r"|(_test|Test)\.php$"
    ),
    rules=LARAVEL_RULES,
    review_persona=LARAVEL_REVIEW_PERSONA,
    chat_persona=LARAVEL_CHAT_PERSONA,
    review_instruction=(
        "Review ONLY the changed lines above. Report only if you are certain of a critical "
        "security or correctness bug."
    ),
    help_examples=(
        "explain this eloquent query",
        "how can I prevent SQL injection here?",
        "is this the best approach for validation?",
    ),
    aliases=("server-web", "php"),
    comment_prefixes=("//", "/*", "*", "#"),
    max_files=8,
    diff_chars=3000,
    icon="\U0001f418",
)

SWIFT = StackProfile(
    name="swift",
    title="Swift/iOS",
    extensions=(".swift",),
    exclude=(
        r"(^|/)(Pods|Carthage|\.build|DerivedData|fastlane)/"
        r"|(^|/)\w*(Tests|UITests)/"
    ),
    rules=SWIFT_RULES,
    review_persona=SWIFT_REVIEW_PERSONA,
    chat_persona=SWIFT_CHAT_PERSONA,
    review_instruction=(
        "Review only the diff above. Report definite issues (safety, memory, concurrency)."
    ),
    help_examples=(
        "is this retain cycle safe?",
        "should this be async/await?",
        "is force unwrap here safe?",
    ),
    aliases=("mobile", "ios"),
    comment_prefixes=("//", "/*", "*"),
    max_files=10,
    diff_chars=3000,
    icon="\U0001f34e",
)

_PROFILES: tuple[StackProfile, ...] = (REACT, LARAVEL, SWIFT)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def all_profiles() -> tuple[StackProfile, ...]:
    """Every registered profile, in declaration order."""
    return _PROFILES


def resolve(name: str) -> StackProfile:
    """Look up a profile by name or alias. Unknown names are a configuration error."""
    key = name.strip().lower()
    for profile in _PROFILES:
        if key == profile.name or key in profile.aliases:
            return profile
    known = ", ".join(p.name for p in _PROFILES)
    raise ConfigurationError(f"Unknown stack '{name}' (known stacks: {known}, or 'auto')")
