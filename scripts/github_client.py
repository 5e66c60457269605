"""
github_client.py — Thin GitHub access through the gh CLI.

Covers the four source-control calls the review needs: list a PR's
changed files, read a file at a ref, read PR metadata, and post an issue
comment. Any gh failure surfaces as CollaboratorError; callers decide
whether that is fatal.
"""

import json
import subprocess
import tempfile
from pathlib import Path
from urllib.parse import quote

from models import CollaboratorError


def _gh_api(args: list[str], timeout: int = 15) -> tuple[int, str, str]:
    """Run gh api command."""
    try:
        result = subprocess.run(
            ["gh", "api"] + args,
            capture_output=True, text=True, encoding="utf-8", errors="replace", timeout=timeout,
        )
        return result.returncode, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        return -1, "", "timeout"
    except (OSError, subprocess.SubprocessError) as e:
        return -1, "", str(e)


class GitHubClient:
    def __init__(self, repository: str, api=_gh_api):
        self.repository = repository
        self._api = api

    def _call(self, args: list[str], what: str, timeout: int = 15) -> str:
        rc, stdout, stderr = self._api(args, timeout=timeout)
        if rc != 0:
            raise CollaboratorError(f"{what} failed: {stderr.strip()[:200] or f'exit code {rc}'}")
        return stdout

    def fetch_changed_files(self, pr_number: int) -> list[dict]:
        """Return [{path, status, additions, deletions, patch}] for every file in the PR."""
        stdout = self._call(
            [
                f"repos/{self.repository}/pulls/{pr_number}/files",
                "--paginate",
                "--jq", ".[] | {path: .filename, status, additions, deletions, patch}",
            ],
            f"Listing files of PR #{pr_number}",
            timeout=30,
        )
        files = []
        for line in stdout.splitlines():
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError as e:
                raise CollaboratorError(f"Unexpected file listing output: {e}") from e
            entry["patch"] = entry.get("patch") or ""
            files.append(entry)
        return files

    def fetch_file_content(self, path: str, ref: str = "") -> str:
        endpoint = f"repos/{self.repository}/contents/{quote(path)}"
        if ref:
            endpoint += f"?ref={quote(ref)}"
        return self._call(
            [endpoint, "-H", "Accept: application/vnd.github.raw"],
            f"Fetching {path}",
        )

    def fetch_pull_request(self, pr_number: int) -> dict:
        stdout = self._call(
            [
                f"repos/{self.repository}/pulls/{pr_number}",
                "--jq", "{title, body, head_sha: .head.sha}",
            ],
            f"Fetching PR #{pr_number}",
        )
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise CollaboratorError(f"Unexpected PR payload: {e}") from e

    def publish_comment(self, number: int, body: str) -> None:
        with tempfile.NamedTemporaryFile(
            "w", suffix=".json", prefix="comment-payload-", delete=False, encoding="utf-8",
        ) as f:
            json.dump({"body": body}, f, ensure_ascii=False)
            payload_path = Path(f.name)
        try:
            self._call(
                [
                    f"repos/{self.repository}/issues/{number}/comments",
                    "--input", str(payload_path), "--method", "POST",
                ],
                f"Posting comment on #{number}",
                timeout=30,
            )
        finally:
            payload_path.unlink(missing_ok=True)
