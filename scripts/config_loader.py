"""
config_loader.py — Load and merge project configuration.

Configuration is resolved in this order (later overrides earlier):
1. Built-in defaults (defaults/config.yaml in the action repo)
2. Project config (.github/review-agent/config.yaml in the consuming repo)
3. Environment variable overrides

The merged dict is then collapsed, together with the GitHub identifiers
from the environment, into one immutable Settings object. The review and
comment-reply entry points read nothing from the environment after that.
"""

import json
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from models import ConfigurationError

try:
    import yaml
except ImportError:
    # pyyaml not yet installed — happens during action setup
    yaml = None

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MENTION = "@ai-reviewer"
DEFAULT_HEADER = "## \U0001f916 AI Code Review"
DEFAULT_RESULT_PATH = "/tmp/review-result.json"


@dataclass(frozen=True)
class Settings:
    repository: str
    pr_number: int
    head_ref: str = ""
    languages: str = "auto"
    default_stack: str = "react"
    api_key: str = ""
    model: str = DEFAULT_MODEL
    mention: str = DEFAULT_MENTION
    review_header: str = DEFAULT_HEADER
    comment_body: str = ""
    dry_run: bool = False
    ai_min_patch_chars: int = 50
    ai_pacing_seconds: float = 0.5
    max_files: int | None = None
    result_path: str = DEFAULT_RESULT_PATH

    @property
    def ai_enabled(self) -> bool:
        return bool(self.api_key)


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base. Override wins for leaf values."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(environ: dict | None = None) -> dict:
    """Load configuration from defaults + project config + env overrides.

    Environment variables:
        REVIEW_AGENT_CONFIG: Path to project config (relative to repo root)
        REVIEW_AGENT_ACTION_PATH: Path to the action's own directory
    """
    env = os.environ if environ is None else environ
    if yaml is None:
        raise ConfigurationError("pyyaml is required. Install with: pip install pyyaml")

    # 1. Load built-in defaults from the action repo
    action_path = Path(env.get("REVIEW_AGENT_ACTION_PATH", Path(__file__).parent.parent))
    defaults_path = action_path / "defaults" / "config.yaml"

    config = {}
    if defaults_path.exists():
        config = yaml.safe_load(defaults_path.read_text(encoding="utf-8")) or {}

    # 2. Load project-specific config from the consuming repo
    repo_root = _find_repo_root(env)
    config_rel_path = env.get("REVIEW_AGENT_CONFIG", ".github/review-agent/config.yaml")
    project_config_path = repo_root / config_rel_path

    if project_config_path.exists():
        project_config = yaml.safe_load(project_config_path.read_text(encoding="utf-8")) or {}
        config = _deep_merge(config, project_config)
        print(f"  Loaded project config from {config_rel_path}")
    else:
        print(f"  No project config at {config_rel_path} — using defaults")

    # 3. Apply environment variable overrides
    review = config.setdefault("review", {})
    languages = env.get("REVIEW_AGENT_LANGUAGES") or env.get("LANGUAGES")
    if languages:
        review["languages"] = languages
    if env.get("REVIEW_AGENT_MODEL"):
        review["model"] = env["REVIEW_AGENT_MODEL"]
    if env.get("REVIEW_AGENT_DRY_RUN"):
        review["dry_run"] = env["REVIEW_AGENT_DRY_RUN"].lower() == "true"
    if env.get("REVIEW_AGENT_MENTION"):
        config.setdefault("branding", {})["mention"] = env["REVIEW_AGENT_MENTION"]

    return config


def _find_repo_root(environ: dict | None = None) -> Path:
    """Find the Git repository root."""
    env = os.environ if environ is None else environ
    # In GitHub Actions, GITHUB_WORKSPACE is the repo root
    workspace = env.get("GITHUB_WORKSPACE")
    if workspace:
        return Path(workspace)

    # Fall back to git rev-parse
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True, text=True, timeout=5,
        )
        if result.returncode == 0:
            return Path(result.stdout.strip())
    except (OSError, subprocess.SubprocessError):
        pass

    # Last resort: current directory
    return Path.cwd()


def _read_event(env: dict) -> dict:
    event_path = env.get("GITHUB_EVENT_PATH", "")
    if not event_path or not Path(event_path).exists():
        return {}
    try:
        return json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"WARNING: Could not read event payload {event_path}: {e}")
        return {}


def _resolve_pr_number(env: dict, event: dict) -> int:
    raw = env.get("PR_NUMBER", "").strip()
    if not raw:
        for key in ("pull_request", "issue"):
            number = (event.get(key) or {}).get("number")
            if number:
                raw = str(number)
                break
    if not raw:
        raise ConfigurationError("PR number not found (set PR_NUMBER or run on a pull_request/issue_comment event)")
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"PR_NUMBER is not a number: {raw!r}") from None


def _optional_int(value) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Expected an integer, got {value!r}") from None


def load_settings(config: dict | None = None, environ: dict | None = None) -> Settings:
    """Build the run's Settings from merged config and the GitHub environment.

    Raises ConfigurationError when the repository or PR number is missing.
    """
    env = dict(os.environ if environ is None else environ)
    if config is None:
        config = load_config(env)

    review = config.get("review", {}) or {}
    branding = config.get("branding", {}) or {}
    event = _read_event(env)

    repository = env.get("GITHUB_REPOSITORY", "").strip()
    if not repository or "/" not in repository:
        raise ConfigurationError("GITHUB_REPOSITORY must be set to 'owner/repo'")

    head_ref = (
        ((event.get("pull_request") or {}).get("head") or {}).get("sha")
        or env.get("HEAD_SHA", "")
        or env.get("GITHUB_SHA", "")
    )
    comment_body = env.get("COMMENT_BODY") or (event.get("comment") or {}).get("body", "") or ""

    try:
        pacing_ms = float(review.get("ai_pacing_ms", 500))
        min_patch = int(review.get("ai_min_patch_chars", 50))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid review setting: {e}") from None

    return Settings(
        repository=repository,
        pr_number=_resolve_pr_number(env, event),
        head_ref=head_ref,
        languages=str(review.get("languages", "auto") or "auto"),
        default_stack=str(review.get("default_stack", "react")),
        api_key=env.get("ANTHROPIC_API_KEY", ""),
        model=str(review.get("model", DEFAULT_MODEL)),
        mention=str(branding.get("mention", DEFAULT_MENTION)),
        review_header=str(branding.get("review_header", DEFAULT_HEADER)),
        comment_body=comment_body,
        dry_run=bool(review.get("dry_run", False)),
        ai_min_patch_chars=min_patch,
        ai_pacing_seconds=max(pacing_ms, 0.0) / 1000.0,
        max_files=_optional_int(review.get("max_files")),
        result_path=str(review.get("result_path", DEFAULT_RESULT_PATH)),
    )
