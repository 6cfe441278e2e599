"""
Async git subprocess helpers.

Every command runs through `run_git`, which kills the child process if the
awaiting task is cancelled or times out, so no git process outlives the
pipeline.
"""

import asyncio
import logging
import os
import re
from datetime import UTC, datetime
from pathlib import Path

from wiwo.services.history.exceptions import GitCommandError

logger = logging.getLogger(__name__)

FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"

_CREDENTIALS_RE = re.compile(r"(https?://)[^/@\s]+@")


def redact_url(url: str) -> str:
    """Strip credentials from a URL before it is logged or raised."""
    return _CREDENTIALS_RE.sub(r"\1***@", url)


def authenticated_clone_url(base_url: str, full_name: str, token: str | None) -> str:
    """
    Build the clone URL for a repository.

    Credentials are only embedded for http(s) remotes; other schemes
    (file://, ssh) are returned untouched.
    """
    url = f"{base_url.rstrip('/')}/{full_name}.git"
    if token and url.startswith(("https://", "http://")):
        scheme, rest = url.split("://", 1)
        return f"{scheme}://x-access-token:{token}@{rest}"
    return url


async def run_git(*args: str, cwd: Path | None = None) -> str:
    """
    Run a git command and return its stdout.

    Args:
        *args: git arguments (without the leading "git")
        cwd: Working directory

    Returns:
        Decoded stdout

    Raises:
        GitCommandError: If git exits non-zero
    """
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"}
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=cwd,
        env=env,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await process.communicate()
    except BaseException:
        # Cancelled or timed out: do not leave the child running
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    if process.returncode != 0:
        subcommand = next((a for a in args if not a.startswith("-")), "")
        raise GitCommandError(
            subcommand,
            process.returncode or -1,
            redact_url(stderr.decode("utf-8", errors="replace")),
        )
    return stdout.decode("utf-8", errors="replace")


async def clone_bare(url: str, dest: Path) -> None:
    """Blobless bare clone; history and tags only, no file contents."""
    logger.debug(f"Cloning {redact_url(url)} into {dest}")
    await run_git(
        "clone",
        "--bare",
        "--filter=blob:none",
        "--quiet",
        "--",
        url,
        str(dest),
    )


async def has_refs(git_dir: Path) -> bool:
    """Check whether a repository has any branch or tag (False for empty repos)."""
    out = await run_git(
        f"--git-dir={git_dir}",
        "for-each-ref",
        "--count=1",
        "--format=%(refname)",
        "refs/heads",
        "refs/tags",
    )
    return bool(out.strip())


def _parse_git_date(value: str) -> datetime:
    return datetime.fromisoformat(value.strip()).astimezone(UTC)


async def read_commits(git_dir: Path, since: datetime) -> list[tuple[str, datetime, str]]:
    """
    List commits reachable from any ref, committed since `since`.

    `--since` filters on committer date, which is never earlier than the
    author date for ordinary history, so callers filter author dates exactly.

    Returns:
        (sha, author date, subject) tuples, newest first
    """
    out = await run_git(
        f"--git-dir={git_dir}",
        "log",
        "--all",
        "--no-color",
        f"--since={since.isoformat()}",
        f"--format=%H{FIELD_SEP}%aI{FIELD_SEP}%s{RECORD_SEP}",
    )
    commits: list[tuple[str, datetime, str]] = []
    for record in out.split(RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        sha, authored, subject = record.split(FIELD_SEP, 2)
        commits.append((sha, _parse_git_date(authored), subject))
    return commits


async def read_tags(git_dir: Path) -> list[tuple[str, datetime, str]]:
    """
    List tags with their creation date.

    Annotated tags report the tagger date, lightweight tags the date of the
    tagged commit.

    Returns:
        (tag name, creator date, subject) tuples
    """
    out = await run_git(
        f"--git-dir={git_dir}",
        "for-each-ref",
        "refs/tags",
        "--format=%(refname:short)%1f%(creatordate:iso-strict)%1f%(subject)",
    )
    tags: list[tuple[str, datetime, str]] = []
    for line in out.splitlines():
        if not line.strip():
            continue
        name, created, subject = line.split(FIELD_SEP, 2)
        if not created.strip():
            continue
        tags.append((name, _parse_git_date(created), subject))
    return tags
