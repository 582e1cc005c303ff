"""Error types raised by backporter and its collaborators.

Errors fall in two classes:

- HandledError (and AbortedError): expected, operator-facing failures.
  Reported as a plain message and never crash the run.
- everything else (CommandError, ApiError, ...): unexpected failures.
  Reported with full context and re-raised.

ConflictError is a CommandError raised only by the cherry-pick call of the
git mirror, so the backport engine can tell a conflict apart from any other
failing git command by type.
"""

import json
from typing import List, Optional, Sequence, Union


class BackportError(Exception):
    pass


class HandledError(BackportError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AbortedError(HandledError):
    def __init__(self, message: str = "Application was aborted."):
        super().__init__(message)


class CommandError(BackportError):
    def __init__(
        self,
        command: Union[str, Sequence[str]],
        status: Optional[int] = None,
        stderr: str = "",
    ):
        if not isinstance(command, str):
            command = " ".join(str(part) for part in command)
        self.command = command
        self.status = status
        self.stderr = stderr.strip() if stderr else ""

        message = f"Command '{self.command}' failed"
        if status is not None:
            message += f" with status {status}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class ConflictError(CommandError):
    def __init__(
        self,
        sha: str,
        repo_path: str,
        command: Union[str, Sequence[str]] = "git cherry-pick",
        status: Optional[int] = None,
        stderr: str = "",
    ):
        self.sha = sha
        self.repo_path = repo_path
        super().__init__(command, status=status, stderr=stderr)


class ApiError(BackportError):
    """A failed call to the GitHub API.

    Attributes:
        url: The request target (endpoint) that failed.
        status: HTTP status code, if a response was received.
        data: Structured error body returned by GitHub, if any.
    """

    def __init__(self, url: str, status: Optional[int] = None, data=None):
        self.url = url
        self.status = status
        self.data = data
        super().__init__(self.describe())

    def describe(self) -> str:
        if self.data:
            body = self.data if isinstance(self.data, dict) else {"message": self.data}
            return json.dumps({**body, "url": self.url}, indent=4, default=str)

        message = f"GitHub API request to {self.url} failed"
        if self.status is not None:
            message += f" with status {self.status}"
        return message


def error_details(e: BaseException) -> List[str]:
    """Lines of diagnostic context for an unexpected error."""
    lines = [f"{type(e).__name__}: {e}"]
    if isinstance(e, CommandError) and e.status is not None:
        lines.append(f"  command: {e.command}")
        lines.append(f"  status:  {e.status}")
    cause = e.__cause__
    if cause is not None:
        lines.append(f"  caused by {type(cause).__name__}: {cause}")
    return lines
