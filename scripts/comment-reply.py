#!/usr/bin/env python3
"""
comment-reply.py — Reply to a PR comment that mentions the reviewer.

Reads the comment from COMMENT_BODY (or the issue_comment event payload)
and posts exactly one reply. Comments that do not mention the reviewer
are ignored.

Exit codes: 0 replied or ignored, 1 the reply could not be posted,
2 configuration error.
"""

import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
import dispatcher
from ai_requester import AIRequester
from config_loader import load_config, load_settings
from github_client import GitHubClient
from models import CollaboratorError, ConfigurationError
from qa_handler import QAHandler


def main(environ: dict | None = None, client: GitHubClient | None = None,
         requester: AIRequester | None = None) -> int:
    env = dict(os.environ if environ is None else environ)

    print("=== Review Agent: Comment Reply ===")
    try:
        settings = load_settings(load_config(env), env)
        dispatcher.validate(settings.languages, settings.default_stack)
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        return 2

    if settings.mention.lower() not in settings.comment_body.lower():
        print(f"Comment does not mention {settings.mention}. Nothing to do.")
        return 0

    print(f"Handling comment on PR #{settings.pr_number}")
    client = client or GitHubClient(settings.repository)
    requester = requester or AIRequester(settings.api_key, settings.model, settings.ai_pacing_seconds)

    try:
        QAHandler(settings, client, requester).handle_comment()
    except CollaboratorError as e:
        print(f"ERROR: Could not post reply: {e}")
        return 1

    print("=== Comment Reply Complete ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
