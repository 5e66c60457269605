"""Tests for stack_profiles.py and rule_tables.py — registry lookup, file matching, rule table sanity."""

import re

import pytest

from models import PRIORITY_ORDER, SEVERITY_CRITICAL, SEVERITY_SUGGESTION, ConfigurationError
import stack_profiles
from stack_profiles import LARAVEL, REACT, SWIFT


class TestResolve:
    @pytest.mark.parametrize("name,expected", [
        ("react", REACT),
        ("frontend", REACT),
        ("  TypeScript ", REACT),
        ("laravel", LARAVEL),
        ("Server-Web", LARAVEL),
        ("swift", SWIFT),
        ("MOBILE", SWIFT),
    ])
    def test_names_and_aliases(self, name, expected):
        assert stack_profiles.resolve(name) is expected

    def test_unknown_name_fails(self):
        with pytest.raises(ConfigurationError, match="Unknown stack 'cobol'"):
            stack_profiles.resolve("cobol")

    def test_auto_is_not_a_profile(self):
        with pytest.raises(ConfigurationError):
            stack_profiles.resolve("auto")

    def test_all_profiles_in_declaration_order(self):
        assert [p.name for p in stack_profiles.all_profiles()] == ["react", "laravel", "swift"]


class TestAccepts:
    @pytest.mark.parametrize("profile,path,expected", [
        (REACT, "src/App.tsx", True),
        (REACT, "src/hooks/useUser.TS", True),
        (REACT, "dist/app.js", False),
        (REACT, "app/Models/User.php", False),
        (LARAVEL, "app/Models/User.php", True),
        (LARAVEL, "vendor/laravel/framework/src/Foo.php", False),
        (LARAVEL, "tests/Feature/UserTest.php", False),
        (LARAVEL, "bootstrap/cache/services.php", False),
        (SWIFT, "App/Views/ProfileView.swift", True),
        (SWIFT, "Pods/Alamofire/Session.swift", False),
        (SWIFT, "App/AppUITests/LoginUITests.swift", False),
        (SWIFT, "README.md", False),
    ])
    def test_accepts(self, profile, path, expected):
        assert profile.accepts(path) is expected


class TestProfiles:
    @pytest.mark.parametrize("profile", stack_profiles.all_profiles())
    def test_review_persona_cooler_than_chat(self, profile):
        assert profile.review_persona.temperature < profile.chat_persona.temperature

    @pytest.mark.parametrize("profile", stack_profiles.all_profiles())
    def test_review_persona_asks_for_findings_format(self, profile):
        assert "CRITICAL:" in profile.review_persona.system_prompt
        assert "SUGGESTIONS:" in profile.review_persona.system_prompt

    def test_batch_limits(self):
        assert (REACT.max_files, LARAVEL.max_files, SWIFT.max_files) == (10, 8, 10)
        assert (REACT.diff_chars, LARAVEL.diff_chars, SWIFT.diff_chars) == (3500, 3000, 3000)

    @pytest.mark.parametrize("profile", stack_profiles.all_profiles())
    def test_has_help_examples(self, profile):
        assert profile.help_examples


class TestRuleTables:
    def test_rule_ids_unique(self):
        ids = [rule.id for p in stack_profiles.all_profiles() for rule in p.rules]
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize("profile", stack_profiles.all_profiles())
    def test_rules_well_formed(self, profile):
        for rule in profile.rules:
            re.compile(rule.pattern)
            for extra in (rule.unless, rule.file_requires):
                if extra:
                    re.compile(extra)
            assert rule.severity in (SEVERITY_CRITICAL, SEVERITY_SUGGESTION)
            assert rule.priority in PRIORITY_ORDER
            assert rule.id.startswith(profile.name + "-")

    @pytest.mark.parametrize("profile", stack_profiles.all_profiles())
    def test_critical_rules_declared_first(self, profile):
        severities = [rule.severity for rule in profile.rules]
        first_suggestion = severities.index(SEVERITY_SUGGESTION)
        assert SEVERITY_CRITICAL not in severities[first_suggestion:]

    def test_react_table_size(self):
        critical = [r for r in REACT.rules if r.severity == SEVERITY_CRITICAL]
        suggestions = [r for r in REACT.rules if r.severity == SEVERITY_SUGGESTION]
        assert (len(critical), len(suggestions)) == (10, 15)
