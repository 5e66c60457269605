"""
ai_requester.py — Second-opinion review of a file diff through Claude.

One request per file, no retries. Failures and "nothing found" replies
both come back as an empty string so the deterministic findings stand on
their own. Requests within one run are spaced by a minimum pacing delay.

Without ANTHROPIC_API_KEY the requester is disabled: review requests are
skipped with a warning and no client is ever constructed.
"""

import re
import time

from models import CollaboratorError
from stack_profiles import Persona, StackProfile

NEGATIVE_PHRASES = {
    "none",
    "no issues",
    "no issues found",
    "no issues detected",
    "n/a",
    "nothing to report",
    "lgtm",
}

_SECTION_LABEL = re.compile(r"^\s*\**\s*(critical|suggestions?)\s*\**\s*:\s*", re.IGNORECASE)
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+\.)\s*")


def build_review_prompt(profile: StackProfile, file_path: str, diff_text: str) -> str:
    """User message for one file: path, truncated diff, stack instruction."""
    preview = diff_text[:profile.diff_chars]
    return (
        f"File: {file_path}\n\n"
        f"Code changes:\n```diff\n{preview}\n```\n\n"
        f"{profile.review_instruction}"
    )


def normalize_reply(reply: str | None) -> str:
    """Return the reply, or "" when it only says there is nothing to report.

    Section labels (CRITICAL:, SUGGESTIONS:) and list bullets are ignored;
    if every remaining line is one of NEGATIVE_PHRASES the reply is empty.
    """
    if not reply or not reply.strip():
        return ""
    for raw_line in reply.strip().splitlines():
        line = _BULLET.sub("", _SECTION_LABEL.sub("", raw_line)).strip().strip(".!*_`").strip().lower()
        if line and line not in NEGATIVE_PHRASES:
            return reply.strip()
    return ""


class AIRequester:
    def __init__(self, api_key: str, model: str, pacing_seconds: float = 0.5,
                 client=None, sleep=time.sleep, clock=time.monotonic):
        self.api_key = api_key
        self.model = model
        self.pacing_seconds = pacing_seconds
        self._client = client
        self._sleep = sleep
        self._clock = clock
        self._last_request: float | None = None
        self.requests_made = 0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _get_client(self):
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def _pace(self) -> None:
        if self._last_request is None:
            return
        remaining = self.pacing_seconds - (self._clock() - self._last_request)
        if remaining > 0:
            self._sleep(remaining)

    def request_completion(self, persona: Persona, prompt: str) -> str:
        """Send one system+user exchange. Raises CollaboratorError on any failure."""
        if not self.enabled:
            raise CollaboratorError("ANTHROPIC_API_KEY not set")

        self._pace()
        self.requests_made += 1
        try:
            response = self._get_client().messages.create(
                model=self.model,
                max_tokens=persona.max_tokens,
                temperature=persona.temperature,
                system=persona.system_prompt,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise CollaboratorError(f"Completion request failed: {e}") from e
        finally:
            self._last_request = self._clock()

        text = "".join(
            block.text for block in getattr(response, "content", None) or []
            if getattr(block, "type", "") == "text"
        )
        if not text.strip():
            raise CollaboratorError("Completion request returned no text")
        return text

    def request_review(self, profile: StackProfile, file_path: str, diff_text: str) -> str:
        """AI narrative for one file's diff, or "" when disabled, failed, or clean."""
        if not self.enabled:
            print(f"  WARNING: ANTHROPIC_API_KEY not set — skipping AI analysis of {file_path}")
            return ""

        prompt = build_review_prompt(profile, file_path, diff_text)
        try:
            reply = self.request_completion(profile.review_persona, prompt)
        except CollaboratorError as e:
            print(f"  WARNING: AI review of {file_path} failed: {e}")
            return ""
        return normalize_reply(reply)
