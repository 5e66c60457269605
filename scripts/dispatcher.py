"""
dispatcher.py — Decide which stack profiles apply to a PR.

Explicit mode resolves every requested name (unknown names fail fast).
Auto mode picks every profile that accepts at least one changed file and
falls back to the configured default stack when none does, so a run never
ends up with zero reviewers. A list mixing "auto" with names runs the named
stacks plus whatever auto-detection finds. Selection depends only on its
inputs.
"""

import stack_profiles
from stack_profiles import StackProfile

AUTO = "auto"


def parse_languages(requested: str | None) -> list[str]:
    """Split a comma-separated selection into lowercase names. Empty input means auto mode."""
    if not requested or not requested.strip():
        return [AUTO]
    names: list[str] = []
    for name in requested.split(","):
        name = name.strip().lower()
        if name and name not in names:
            names.append(name)
    return names or [AUTO]


def detect_stacks(changed_paths: list[str]) -> list[StackProfile]:
    """Profiles whose matcher accepts at least one path, in registry order."""
    return [
        profile for profile in stack_profiles.all_profiles()
        if any(profile.accepts(path) for path in changed_paths)
    ]


def resolve_explicit(names: list[str]) -> list[StackProfile]:
    """Resolve every name except "auto", dropping duplicates. Unknown names raise ConfigurationError."""
    selected: list[StackProfile] = []
    for name in names:
        if name == AUTO:
            continue
        profile = stack_profiles.resolve(name)
        if profile not in selected:
            selected.append(profile)
    return selected


def validate(requested: str | None, default_stack: str = "react") -> None:
    """Resolve every configured name up front so bad config fails before any network call."""
    stack_profiles.resolve(default_stack)
    resolve_explicit(parse_languages(requested))


def select(requested: str | None, changed_paths: list[str], default_stack: str = "react") -> list[StackProfile]:
    """Return the profiles to run for this PR.

    Raises ConfigurationError for an unknown explicit name or an unknown
    default stack.
    """
    names = parse_languages(requested)
    selected = resolve_explicit(names)
    if AUTO not in names:
        return selected

    for profile in detect_stacks(changed_paths):
        if profile not in selected:
            selected.append(profile)
    if selected:
        return selected
    return [stack_profiles.resolve(default_stack)]
