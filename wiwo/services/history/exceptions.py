"""Exceptions for the git history fallback."""


class FallbackError(Exception):
    """Error while mining repository history."""

    def __init__(self, message: str, repo: str | None = None):
        self.message = message
        self.repo = repo
        super().__init__(message)


class CloneFailedError(FallbackError):
    """A repository could not be cloned or scanned. Skipped, never fatal."""


class NoRepositoriesError(FallbackError):
    """The user has no repositories worth cloning. The fallback contributes nothing."""


class GitCommandError(Exception):
    """A git subprocess exited non-zero."""

    def __init__(self, subcommand: str, returncode: int, stderr: str):
        self.subcommand = subcommand
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git {subcommand} exited {returncode}: {stderr.strip()}")
