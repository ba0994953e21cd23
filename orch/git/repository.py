"""Git repository abstraction.

``Repository`` wraps the git CLI for a single local clone. It exposes exactly
the queries and mutations the release flow needs (cleanliness, branch,
upstream sync, tag existence, tag create/push) and is the production
implementation of ``orch.release.vcs.VcsGateway``.

All operations return Result types:

    repo = Repository(Path("/src/truthdb"))
    match repo.current_branch():
        case Ok(None):
            print("detached HEAD")
        case Ok(branch):
            print(f"on {branch}")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from orch.core.result import Err, Ok, Result
from orch.platform.process import ProcessError
from orch.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "push", "ls-remote"})

# `git ls-remote --exit-code` exits 2 when no ref matched.
_LS_REMOTE_NO_MATCH = 2

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1

    def __str__(self) -> str:
        return f"git {self.command}: {self.message}"


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    message = error.stderr.strip() or error.stdout.strip() or fallback
    return GitError(command=command, message=message, returncode=error.returncode)


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
        remote: Remote that tags are compared against and pushed to
    """

    def __init__(self, path: Path, *, remote: str = "origin") -> None:
        self.path = path
        self.remote = remote

    def exists(self) -> bool:
        """Check if this is a valid git repository (worktrees use a .git file)."""
        return (self.path / ".git").exists()

    def origin_url(self) -> Result[str, GitError]:
        result = self._run(["remote", "get-url", self.remote])
        match result:
            case Err(e):
                return Err(_git_error("remote get-url", e, f"no remote named {self.remote}"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def fetch(self) -> Result[None, GitError]:
        """Fetch branches and tags so upstream comparisons are current."""
        result = self._run(["fetch", "--tags", self.remote])
        if isinstance(result, Err):
            return Err(_git_error("fetch", result.error, "fetch failed"))
        return Ok(None)

    def is_clean(self) -> Result[bool, GitError]:
        """True when there are no staged, unstaged or untracked changes."""
        result = self._run(["status", "--porcelain"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(stdout.strip() == "")

    def current_branch(self) -> Result[str | None, GitError]:
        """Get current branch name, or None on a detached HEAD."""
        result = self._run(["symbolic-ref", "--quiet", "--short", "HEAD"])
        match result:
            case Err(e):
                # --quiet makes a detached HEAD a silent exit 1.
                if e.returncode == 1 and not e.stderr.strip():
                    return Ok(None)
                return Err(_git_error("symbolic-ref", e, "failed to resolve HEAD"))
            case Ok(stdout):
                branch = stdout.strip()
                return Ok(branch or None)

    def head_commit(self) -> Result[str, GitError]:
        return self._rev_parse("HEAD")

    def remote_tracking_head(self, branch: str) -> Result[str | None, GitError]:
        """Commit of the branch's configured upstream, or None without one."""
        upstream = self._run(
            ["for-each-ref", "--format=%(upstream:short)", f"refs/heads/{branch}"]
        )
        if isinstance(upstream, Err):
            return Err(_git_error("for-each-ref", upstream.error, "failed to read upstream"))

        name = upstream.value.strip()
        if not name:
            return Ok(None)
        return self._rev_parse(name)

    def tag_exists_local(self, tag: str) -> Result[bool, GitError]:
        result = self._run(["rev-parse", "--verify", "--quiet", f"refs/tags/{tag}"])
        match result:
            case Ok(_):
                return Ok(True)
            case Err(e):
                if e.returncode == 1:
                    return Ok(False)
                return Err(_git_error("rev-parse", e, f"failed to look up tag {tag}"))

    def tag_exists_remote(self, tag: str) -> Result[bool, GitError]:
        """Query the remote itself rather than the locally fetched tags."""
        result = self._run(
            ["ls-remote", "--exit-code", "--tags", self.remote, f"refs/tags/{tag}"]
        )
        match result:
            case Ok(_):
                return Ok(True)
            case Err(e):
                if e.returncode == _LS_REMOTE_NO_MATCH:
                    return Ok(False)
                return Err(
                    _git_error("ls-remote", e, f"failed to query {self.remote} for tag {tag}")
                )

    def create_tag(self, tag: str, commit: str) -> Result[None, GitError]:
        """Create an annotated tag named ``tag`` on ``commit``."""
        result = self._run(["tag", "-a", tag, "-m", f"Release {tag}", commit])
        if isinstance(result, Err):
            return Err(_git_error("tag", result.error, f"failed to create tag {tag}"))
        return Ok(None)

    def push_tag(self, tag: str) -> Result[None, GitError]:
        result = self._run(["push", self.remote, f"refs/tags/{tag}"])
        if isinstance(result, Err):
            return Err(_git_error("push", result.error, f"failed to push tag {tag}"))
        return Ok(None)

    def _rev_parse(self, ref: str) -> Result[str, GitError]:
        result = self._run(["rev-parse", "--verify", f"{ref}^{{commit}}"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e, f"failed to resolve {ref}"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
