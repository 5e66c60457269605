"""
qa_handler.py — Answer a question asked by mentioning the reviewer in a PR comment.

One exchange per triggering comment, no conversation state. The handler
always posts exactly one reply: the help text for an empty question, the
AI answer otherwise, or a short fallback when no answer could be obtained.
"""

import re
from dataclasses import replace

import dispatcher
from config_loader import Settings
from models import CollaboratorError
from stack_profiles import Persona, StackProfile

MAX_CONTEXT_FILES = 5
DESCRIPTION_CHARS = 300
PATCH_SAMPLE_CHARS = 800
FILE_SNIPPET_CHARS = 2000

NO_KEY_ANSWER = (
    "⚠️ ANTHROPIC_API_KEY not configured. Add it to the repository secrets to enable AI responses."
)
ERROR_ANSWER = "❌ Error communicating with the AI service. Please try again later."


def extract_question(body: str, mention: str) -> str:
    """Remove every occurrence of the mention token (any case) and trim."""
    if not body:
        return ""
    return re.sub(re.escape(mention), "", body, flags=re.IGNORECASE).strip()


def stack_label(profiles: list[StackProfile]) -> str:
    return " + ".join(p.title for p in profiles)


def help_message(profiles: list[StackProfile], mention: str) -> str:
    lines = [
        f"\U0001f44b Hi! I'm the AI code reviewer. Ask me anything about this {stack_label(profiles)} code!",
        "",
        "**Examples:**",
    ]
    for profile in profiles:
        for example in profile.help_examples:
            lines.append(f"- `{mention} {example}`")
    lines.append("")
    lines.append(f"Mention `{mention}` followed by your question and I'll reply here.")
    return "\n".join(lines)


def format_reply(profiles: list[StackProfile], answer: str, mention: str) -> str:
    return (
        f"### \U0001f916 AI Reviewer Response ({stack_label(profiles)})\n\n"
        f"{answer.strip()}\n\n"
        f"---\n"
        f"*Have more questions? Just mention `{mention}` followed by your question!*"
    )


def detect_mentioned_file(question: str, profiles: list[StackProfile],
                          changed_paths: list[str]) -> str | None:
    """Path of a file the question names, if it has an extension one of the active stacks owns.

    A bare file name is resolved against the PR's changed files; otherwise
    the name is used as written.
    """
    extensions = sorted({ext.lstrip(".") for p in profiles for ext in p.extensions}, key=len, reverse=True)
    if not extensions:
        return None
    pattern = re.compile(r"(?<![\w./-])([\w./-]+\.(?:" + "|".join(map(re.escape, extensions)) + r"))\b")
    match = pattern.search(question)
    if not match:
        return None
    name = match.group(1).lstrip("./")
    for path in changed_paths:
        if path == name or path.endswith("/" + name):
            return path
    return name


def combined_persona(profiles: list[StackProfile]) -> Persona:
    """Chat persona for the active stacks. Several stacks share one merged prompt."""
    if len(profiles) == 1:
        return profiles[0].chat_persona
    prompt = (
        f"This pull request spans several stacks ({stack_label(profiles)}). "
        "Answer with the expertise that fits the code in question.\n\n"
        + "\n\n".join(p.chat_persona.system_prompt for p in profiles)
    )
    return Persona(
        system_prompt=prompt,
        temperature=min(p.chat_persona.temperature for p in profiles),
        max_tokens=max(p.chat_persona.max_tokens for p in profiles),
    )


def build_context(pr: dict, changed_files: list[dict], profiles: list[StackProfile],
                  mentioned_file: str | None = None, snippet: str = "") -> str:
    """Bounded PR context: title, short description, a few matching files, a patch sample."""
    parts = []
    if pr.get("title"):
        parts.append(f"PR: {pr['title']}")
    if pr.get("body"):
        parts.append(f"Description: {pr['body'][:DESCRIPTION_CHARS]}")

    matching = [
        f for f in changed_files
        if any(p.accepts(f.get("path", "")) for p in profiles)
    ][:MAX_CONTEXT_FILES]
    if changed_files:
        parts.append("")
        parts.append(f"Changed files ({len(changed_files)} total):")
        for f in matching:
            parts.append(f"- {f['path']} (+{f.get('additions', 0)} -{f.get('deletions', 0)})")

    if matching and matching[0].get("patch"):
        sample = matching[0]["patch"][:PATCH_SAMPLE_CHARS]
        parts.append("")
        parts.append(f"Code sample from {matching[0]['path']}:\n```\n{sample}\n```")

    if mentioned_file and snippet:
        parts.append("")
        parts.append(f"File content ({mentioned_file}):\n```\n{snippet[:FILE_SNIPPET_CHARS]}\n```")

    return "\n".join(parts).strip()


class QAHandler:
    def __init__(self, settings: Settings, source, requester):
        self.settings = settings
        self.source = source
        self.requester = requester

    def _changed_files(self) -> list[dict]:
        try:
            return self.source.fetch_changed_files(self.settings.pr_number)
        except CollaboratorError as e:
            print(f"  WARNING: Could not list changed files: {e}")
            return []

    def _pull_request(self) -> dict:
        try:
            return self.source.fetch_pull_request(self.settings.pr_number)
        except CollaboratorError as e:
            print(f"  WARNING: Could not fetch PR details: {e}")
            return {}

    def _snippet(self, path: str, ref: str) -> str:
        try:
            return self.source.fetch_file_content(path, ref)[:FILE_SNIPPET_CHARS]
        except CollaboratorError as e:
            print(f"  WARNING: Could not read {path}: {e}")
            return ""

    def answer(self, question: str, profiles: list[StackProfile], pr: dict,
               changed_files: list[dict]) -> str:
        """AI answer to the question, or a fallback message. Never raises for AI failures."""
        if not self.requester.enabled:
            print("  WARNING: ANTHROPIC_API_KEY not set — replying with configuration hint")
            return NO_KEY_ANSWER

        mentioned = detect_mentioned_file(question, profiles, [f.get("path", "") for f in changed_files])
        snippet = ""
        if mentioned:
            print(f"  Question mentions {mentioned}")
            snippet = self._snippet(mentioned, self.settings.head_ref or pr.get("head_sha", ""))

        context = build_context(pr, changed_files, profiles, mentioned, snippet)
        persona = combined_persona(profiles)
        if context:
            persona = replace(persona, system_prompt=f"{persona.system_prompt}\n\nCONTEXT:\n{context}")

        try:
            return self.requester.request_completion(persona, question)
        except CollaboratorError as e:
            print(f"  ERROR: AI request failed: {e}")
            return ERROR_ANSWER

    def handle_comment(self, body: str | None = None) -> str:
        """Reply to one triggering comment and return the posted text.

        Raises CollaboratorError only when the reply itself cannot be posted.
        """
        body = self.settings.comment_body if body is None else body
        question = extract_question(body, self.settings.mention)
        changed_files = self._changed_files()
        profiles = dispatcher.select(
            self.settings.languages,
            [f.get("path", "") for f in changed_files],
            self.settings.default_stack,
        )
        print(f"  Active stacks: {', '.join(p.name for p in profiles)}")

        if not question:
            print("  Empty question — posting help")
            reply = help_message(profiles, self.settings.mention)
        else:
            print(f"  Question: {question[:120]}")
            pr = self._pull_request()
            reply = format_reply(profiles, self.answer(question, profiles, pr, changed_files),
                                 self.settings.mention)

        self.source.publish_comment(self.settings.pr_number, reply)
        print("  Posted reply")
        return reply
